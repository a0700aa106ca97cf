from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from app.models.common import EMAIL_PATTERN, CamelModel, RecordOut


class PaymentRequest(CamelModel):
    amount: float = Field(..., gt=0)
    booking_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    customer_email: str = Field(..., pattern=EMAIL_PATTERN)
    customer_name: str | None = None
    customer_phone: str | None = None
    service_type: str | None = None

    @field_validator("booking_id", "user_id", "customer_email", mode="before")
    @classmethod
    def _coerce_str(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class OrderCreated(CamelModel):
    order_id: str
    amount: int = Field(..., description="Smallest currency unit (paise).")
    currency: str
    payment_id: str
    key_id: str | None = None


class PaymentLinkCreated(CamelModel):
    link_id: str
    short_url: str | None = None
    amount: int
    currency: str


class PaymentVerifyRequest(CamelModel):
    razorpay_order_id: str = Field(..., min_length=1)
    razorpay_payment_id: str = Field(..., min_length=1)
    razorpay_signature: str = Field(..., min_length=1)


class PaymentVerified(CamelModel):
    payment_id: str
    transaction_id: str | None = None
    amount: float
    status: str


class PaymentOut(RecordOut):
    booking_id: str
    user_id: str
    amount: float
    currency: str
    razorpay_order_id: str
    razorpay_payment_id: str | None = None
    status: str
    payment_method: str
    transaction_id: str | None = None
    failure_reason: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="meta")


class PaymentVerifyResponse(CamelModel):
    success: bool = True
    message: str = "Payment verified successfully"
    data: PaymentVerified
