from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.core.exceptions import NotFoundError, UpstreamError, ValidationError
from app.db.models import Booking, Store
from app.models.bookings import BOOKING_STATUSES, AdminBookingQuery, BookingCreate

logger = logging.getLogger("app.bookings")


@dataclass
class BookingPage:
    bookings: list[Booking]
    page: int
    limit: int
    total: int


@dataclass
class BookingService:
    session: Session

    def create_booking(self, payload: BookingCreate) -> Booking:
        if payload.store_id and self.session.get(Store, payload.store_id) is None:
            raise NotFoundError("Store not found", details={"storeId": payload.store_id})

        booking = Booking(**payload.model_dump())
        self.session.add(booking)
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise UpstreamError("Failed to create booking") from exc
        logger.info("booking.created", extra={"booking_id": booking.id})
        return booking

    def get_booking(self, booking_id: str) -> Booking:
        booking = self.session.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError("Booking not found", details={"bookingId": booking_id})
        return booking

    def list_for_admin(self, query: AdminBookingQuery) -> BookingPage:
        stmt = select(Booking)
        if query.status and query.status in BOOKING_STATUSES:
            stmt = stmt.where(Booking.booking_status == query.status)
        if query.date_from:
            start = datetime.combine(query.date_from, time.min, tzinfo=timezone.utc)
            stmt = stmt.where(Booking.created_at >= start)
        if query.date_to:
            end = datetime.combine(query.date_to + timedelta(days=1), time.min, tzinfo=timezone.utc)
            stmt = stmt.where(Booking.created_at < end)

        total_stmt = select(func.count()).select_from(stmt.subquery())
        page_stmt = (
            stmt.options(selectinload(Booking.payments))
            .order_by(Booking.created_at.desc())
            .offset((query.page - 1) * query.limit)
            .limit(query.limit)
        )
        try:
            total = self.session.execute(total_stmt).scalar_one()
            bookings = list(self.session.execute(page_stmt).scalars())
        except SQLAlchemyError as exc:
            raise UpstreamError("Failed to fetch bookings") from exc
        return BookingPage(bookings=bookings, page=query.page, limit=query.limit, total=total)

    def update_status(self, booking_id: str, status: str) -> Booking:
        if status not in BOOKING_STATUSES:
            raise ValidationError("Invalid payload", details={"allowed": list(BOOKING_STATUSES)})
        booking = self.get_booking(booking_id)
        booking.booking_status = status
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise UpstreamError("Failed to update booking") from exc
        logger.info("booking.status_changed", extra={"booking_id": booking.id, "status": status})
        return booking
