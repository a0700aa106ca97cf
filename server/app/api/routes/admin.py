import datetime as dt

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import require_admin
from app.db.session import get_session
from app.models.bookings import (
    AdminBookingOut,
    AdminBookingPage,
    AdminBookingQuery,
    BookingOut,
    BookingStatusUpdate,
)
from app.models.common import DataResponse
from app.services.bookings import BookingService

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def get_booking_service(session: Session = Depends(get_session)) -> BookingService:
    return BookingService(session)


@router.get("/bookings", response_model=AdminBookingPage)
def list_bookings(
    status: str | None = Query(None, description="Only bookings in this status."),
    date_from: dt.date | None = Query(None, alias="from", description="Created on or after (YYYY-MM-DD)."),
    date_to: dt.date | None = Query(None, alias="to", description="Created on or before (YYYY-MM-DD)."),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: BookingService = Depends(get_booking_service),
) -> AdminBookingPage:
    query = AdminBookingQuery(status=status, date_from=date_from, date_to=date_to, page=page, limit=limit)
    result = service.list_for_admin(query)
    return AdminBookingPage(
        data=[AdminBookingOut.model_validate(booking) for booking in result.bookings],
        page=result.page,
        limit=result.limit,
        total=result.total,
    )


@router.patch("/bookings", response_model=DataResponse[BookingOut])
def update_booking_status(
    payload: BookingStatusUpdate,
    service: BookingService = Depends(get_booking_service),
) -> DataResponse[BookingOut]:
    booking = service.update_status(payload.booking_id, payload.status)
    return DataResponse[BookingOut](data=BookingOut.model_validate(booking))
