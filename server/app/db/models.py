from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, IdMixin, TimestampMixin, utcnow


def geo_point(latitude: float, longitude: float) -> dict[str, Any]:
    """GeoJSON point; coordinates are [longitude, latitude]."""
    return {"type": "Point", "coordinates": [float(longitude), float(latitude)]}


class Store(IdMixin, TimestampMixin, Base):
    __tablename__ = "stores"

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    address: Mapped[str] = mapped_column(String(512), nullable=False)
    city: Mapped[str | None] = mapped_column(String(128), nullable=True)
    state: Mapped[str | None] = mapped_column(String(128), nullable=True)
    zip: Mapped[str | None] = mapped_column(String(16), nullable=True)
    country: Mapped[str | None] = mapped_column(String(64), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    email: Mapped[str | None] = mapped_column(String(254), nullable=True)
    website: Mapped[str | None] = mapped_column(String(256), nullable=True)

    location: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    # Mirrors of location["coordinates"]; indexed for the proximity bounding box.
    latitude: Mapped[float] = mapped_column(Float, nullable=False, index=True)
    longitude: Mapped[float] = mapped_column(Float, nullable=False, index=True)

    services: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    hours: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    facilities: Mapped[dict[str, bool]] = mapped_column(JSON, default=dict)
    photos: Mapped[list[str]] = mapped_column(JSON, default=list)

    rating: Mapped[float] = mapped_column(Float, default=0.0, nullable=False, index=True)
    review_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    current_queue: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    estimated_wait_time: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    @property
    def available_bays(self) -> int:
        return max(0, (self.capacity or 0) - (self.current_queue or 0))


@event.listens_for(Store, "before_insert")
@event.listens_for(Store, "before_update")
def _sync_scalar_coordinates(mapper, connection, target: Store) -> None:
    if target.location is None:
        target.location = geo_point(target.latitude, target.longitude)
        return
    longitude, latitude = target.location["coordinates"]
    target.latitude = float(latitude)
    target.longitude = float(longitude)


class Service(IdMixin, TimestampMixin, Base):
    __tablename__ = "services"

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[float | None] = mapped_column(Float, nullable=True)  # legacy single price
    prices: Mapped[dict[str, float]] = mapped_column(JSON, default=dict)
    duration_min: Mapped[int | None] = mapped_column(Integer, nullable=True)
    vehicle_tags: Mapped[list[str]] = mapped_column(JSON, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class Booking(IdMixin, TimestampMixin, Base):
    __tablename__ = "bookings"

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False, index=True)
    brand: Mapped[str] = mapped_column(String(64), nullable=False)
    model: Mapped[str] = mapped_column(String(64), nullable=False)
    vehicle_type: Mapped[str] = mapped_column(String(32), nullable=False)
    service: Mapped[str] = mapped_column(String(128), nullable=False)
    date: Mapped[str | None] = mapped_column(String(32), nullable=True)
    time: Mapped[str | None] = mapped_column(String(16), nullable=True)
    location: Mapped[str] = mapped_column(String(512), default="")
    notes: Mapped[str] = mapped_column(Text, default="")
    store_id: Mapped[str | None] = mapped_column(ForeignKey("stores.id"), nullable=True)

    booking_status: Mapped[str] = mapped_column(String(16), default="pending", nullable=False, index=True)
    payment_status: Mapped[str | None] = mapped_column(String(16), nullable=True)
    amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    is_paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    payments: Mapped[list["Payment"]] = relationship(
        back_populates="booking", order_by="Payment.created_at.desc()"
    )


class Payment(IdMixin, TimestampMixin, Base):
    __tablename__ = "payments"

    booking_id: Mapped[str] = mapped_column(ForeignKey("bookings.id"), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    currency: Mapped[str] = mapped_column(String(8), default="INR", nullable=False)
    razorpay_order_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    razorpay_payment_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    razorpay_signature: Mapped[str | None] = mapped_column(String(256), nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="pending", nullable=False)
    payment_method: Mapped[str] = mapped_column(String(32), default="razorpay", nullable=False)
    transaction_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    failure_reason: Mapped[str | None] = mapped_column(String(256), nullable=True)
    meta: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, default=dict)

    booking: Mapped[Booking] = relationship(back_populates="payments")


class Review(IdMixin, TimestampMixin, Base):
    __tablename__ = "reviews"

    booking_id: Mapped[str] = mapped_column(ForeignKey("bookings.id"), nullable=False, unique=True)
    user_id: Mapped[str] = mapped_column(String(254), nullable=False)
    user_name: Mapped[str] = mapped_column(String(128), nullable=False)
    service_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    service_name: Mapped[str] = mapped_column(String(128), nullable=False)
    vehicle_type: Mapped[str] = mapped_column(String(32), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str] = mapped_column(String(500), default="")
    verified: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    booking: Mapped[Booking] = relationship()


class User(IdMixin, TimestampMixin, Base):
    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False, unique=True)
    password_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)
    auth_provider: Mapped[str | None] = mapped_column(String(16), nullable=True)
    auth_provider_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    role: Mapped[str] = mapped_column(String(8), default="user", nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    profile_picture: Mapped[str | None] = mapped_column(String(512), nullable=True)
    bio: Mapped[str | None] = mapped_column(String(500), nullable=True)
    preferences: Mapped[dict[str, bool]] = mapped_column(
        JSON,
        default=lambda: {
            "emailNotifications": True,
            "smsNotifications": False,
            "marketingEmails": False,
        },
    )

    addresses: Mapped[list["Address"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", order_by="Address.created_at"
    )
    payment_methods: Mapped[list["PaymentMethod"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", order_by="PaymentMethod.created_at"
    )


class Address(IdMixin, Base):
    __tablename__ = "addresses"

    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    label: Mapped[str] = mapped_column(String(8), default="home", nullable=False)
    street: Mapped[str] = mapped_column(String(256), nullable=False)
    city: Mapped[str] = mapped_column(String(128), nullable=False)
    state: Mapped[str] = mapped_column(String(128), nullable=False)
    zip_code: Mapped[str] = mapped_column(String(16), nullable=False)
    country: Mapped[str] = mapped_column(String(64), default="India", nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    user: Mapped[User] = relationship(back_populates="addresses")


class PaymentMethod(IdMixin, Base):
    __tablename__ = "payment_methods"

    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    card_last4: Mapped[str | None] = mapped_column(String(4), nullable=True)
    card_holder: Mapped[str | None] = mapped_column(String(128), nullable=True)
    expiry_month: Mapped[str | None] = mapped_column(String(2), nullable=True)
    expiry_year: Mapped[str | None] = mapped_column(String(4), nullable=True)
    card_brand: Mapped[str | None] = mapped_column(String(32), nullable=True)
    upi_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    wallet_provider: Mapped[str | None] = mapped_column(String(64), nullable=True)
    wallet_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    user: Mapped[User] = relationship(back_populates="payment_methods")


class ContactMessage(IdMixin, Base):
    __tablename__ = "contact_messages"

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
