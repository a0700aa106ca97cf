from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.db.session import get_session
from app.models.bookings import BookingCreate, BookingCreatedResponse, BookingOut
from app.models.common import DataResponse
from app.services.bookings import BookingService

router = APIRouter(prefix="/bookings", tags=["bookings"])


def get_booking_service(session: Session = Depends(get_session)) -> BookingService:
    return BookingService(session)


@router.post("", response_model=BookingCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: BookingCreate,
    service: BookingService = Depends(get_booking_service),
) -> BookingCreatedResponse:
    booking = service.create_booking(payload)
    return BookingCreatedResponse(booking_id=booking.id, data=BookingOut.model_validate(booking))


@router.get("/{booking_id}", response_model=DataResponse[BookingOut])
def get_booking(booking_id: str, service: BookingService = Depends(get_booking_service)) -> DataResponse[BookingOut]:
    return DataResponse[BookingOut](data=BookingOut.model_validate(service.get_booking(booking_id)))
