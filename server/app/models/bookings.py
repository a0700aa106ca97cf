from __future__ import annotations

import datetime as dt
from typing import List, Literal

from pydantic import Field, field_validator

from app.models.common import EMAIL_PATTERN, CamelModel, RecordOut

BookingStatus = Literal["pending", "confirmed", "paid", "completed", "cancelled"]
BOOKING_STATUSES: tuple[str, ...] = ("pending", "confirmed", "paid", "completed", "cancelled")


class BookingCreate(CamelModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    brand: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    vehicle_type: str = Field(..., min_length=1)
    service: str = Field(..., min_length=1)
    date: str | None = None
    time: str | None = None
    location: str = ""
    notes: str = ""
    store_id: str | None = None

    @field_validator("name", "phone", "email", "brand", "model", "vehicle_type", "service", mode="before")
    @classmethod
    def _strip_required(cls, value):
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("must not be blank")
        return value

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.lower()


class PaymentSummary(RecordOut):
    amount: float
    currency: str
    status: str
    payment_method: str
    razorpay_order_id: str
    transaction_id: str | None = None


class BookingOut(RecordOut):
    name: str
    phone: str
    email: str
    brand: str
    model: str
    vehicle_type: str
    service: str
    date: str | None = None
    time: str | None = None
    location: str = ""
    notes: str = ""
    store_id: str | None = None
    booking_status: str = "pending"
    payment_status: str | None = None
    amount: float | None = None
    is_paid: bool = False


class AdminBookingOut(BookingOut):
    payments: List[PaymentSummary] = Field(default_factory=list)


class BookingCreatedResponse(CamelModel):
    success: bool = True
    booking_id: str
    data: BookingOut


class AdminBookingQuery(CamelModel):
    status: str | None = None
    date_from: dt.date | None = Field(None, alias="from")
    date_to: dt.date | None = Field(None, alias="to")
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)


class AdminBookingPage(CamelModel):
    data: List[AdminBookingOut] = Field(default_factory=list)
    page: int
    limit: int
    total: int


class BookingStatusUpdate(CamelModel):
    booking_id: str = Field(..., min_length=1)
    status: str = Field(..., min_length=1)
