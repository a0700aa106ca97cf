from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, UpstreamError, ValidationError
from app.db.models import Store, geo_point
from app.models.stores import StoreCreate, StorePatch

logger = logging.getLogger("app.stores")


@dataclass
class StoreService:
    session: Session

    def list_stores(self) -> list[Store]:
        stmt = select(Store).order_by(Store.created_at.desc(), Store.id)
        try:
            return list(self.session.execute(stmt).scalars())
        except SQLAlchemyError as exc:
            raise UpstreamError("Failed to load stores") from exc

    def get_store(self, store_id: str) -> Store:
        store = self.session.get(Store, store_id)
        if store is None:
            raise NotFoundError("Store not found", details={"storeId": store_id})
        return store

    def create_store(self, payload: StoreCreate) -> Store:
        data = payload.model_dump(mode="json", exclude={"latitude", "longitude"})
        store = Store(
            **data,
            latitude=payload.latitude,
            longitude=payload.longitude,
            location=geo_point(payload.latitude, payload.longitude),
        )
        self.session.add(store)
        self._commit("Failed to create store")
        logger.info("store.created", extra={"store_id": store.id})
        return store

    def update_store(self, store_id: str, patch: StorePatch) -> Store:
        store = self.get_store(store_id)
        changes = patch.model_dump(mode="json", exclude_unset=True)

        latitude = changes.pop("latitude", None)
        longitude = changes.pop("longitude", None)
        if (latitude is None) != (longitude is None):
            raise ValidationError("latitude and longitude must be updated together.")
        for key, value in changes.items():
            if value is None and not Store.__table__.c[key].nullable:
                raise ValidationError(f"{key} cannot be cleared.", details={"field": key})

        for key, value in changes.items():
            setattr(store, key, value)
        if latitude is not None and longitude is not None:
            store.location = geo_point(latitude, longitude)

        self._commit("Failed to update store")
        return store

    def _commit(self, message: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise UpstreamError(message) from exc
