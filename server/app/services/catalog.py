from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, UpstreamError, ValidationError
from app.db.models import Service
from app.models.services import ServiceCreate, ServicePatch

logger = logging.getLogger("app.catalog")


@dataclass
class CatalogService:
    """CRUD over the wash services catalogue."""

    session: Session

    def list_services(self) -> list[Service]:
        stmt = select(Service).order_by(Service.created_at.desc(), Service.id)
        try:
            return list(self.session.execute(stmt).scalars())
        except SQLAlchemyError as exc:
            raise UpstreamError("Failed to load services") from exc

    def get_service(self, service_id: str) -> Service:
        service = self.session.get(Service, service_id)
        if service is None:
            raise NotFoundError("Service not found", details={"serviceId": service_id})
        return service

    def create_service(self, payload: ServiceCreate) -> Service:
        data = payload.model_dump(exclude={"prices"})
        service = Service(**data, prices=payload.prices.as_dict())
        self.session.add(service)
        self._commit("Failed to create service")
        logger.info("service.created", extra={"service_id": service.id})
        return service

    def update_service(self, service_id: str, patch: ServicePatch) -> Service:
        service = self.get_service(service_id)
        changes = patch.model_dump(exclude_unset=True, exclude={"prices"})
        for key, value in changes.items():
            if value is None and not Service.__table__.c[key].nullable:
                raise ValidationError(f"{key} cannot be cleared.", details={"field": key})

        for key, value in changes.items():
            setattr(service, key, value)
        if patch.prices is not None:
            # reassign so the JSON column is flagged dirty
            service.prices = {**(service.prices or {}), **patch.prices.as_dict()}

        self._commit("Failed to update service")
        return service

    def delete_service(self, service_id: str) -> None:
        service = self.get_service(service_id)
        self.session.delete(service)
        self._commit("Failed to delete service")
        logger.info("service.deleted", extra={"service_id": service_id})

    def _commit(self, message: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise UpstreamError(message) from exc
