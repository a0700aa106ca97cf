from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import UpstreamError
from app.db.models import ContactMessage
from app.models.contact import ContactCreate

logger = logging.getLogger("app.contact")


@dataclass
class ContactService:
    session: Session

    def submit(self, payload: ContactCreate) -> ContactMessage:
        message = ContactMessage(**payload.model_dump())
        self.session.add(message)
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise UpstreamError("Failed to submit contact message") from exc
        logger.info("contact.received", extra={"contact_id": message.id})
        return message
