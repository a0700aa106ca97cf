from __future__ import annotations

from datetime import datetime
from typing import List, Literal

from pydantic import Field, field_validator, model_validator

from app.models.common import EMAIL_PATTERN, CamelModel, RecordOut

AddressLabel = Literal["home", "work", "other"]
PaymentMethodType = Literal["credit_card", "debit_card", "upi", "wallet"]


class RegisterRequest(CamelModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1)
    confirm_password: str = Field(..., min_length=1)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("must not be blank")
        return cleaned

    @field_validator("email")
    @classmethod
    def _normalise_email(cls, value: str) -> str:
        return value.strip().lower()


class LoginRequest(CamelModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class Preferences(CamelModel):
    email_notifications: bool = True
    sms_notifications: bool = False
    marketing_emails: bool = False


class AddressOut(CamelModel):
    id: str
    label: AddressLabel
    street: str
    city: str
    state: str
    zip_code: str
    country: str
    is_default: bool
    created_at: datetime | None = None


class PaymentMethodOut(CamelModel):
    id: str
    type: PaymentMethodType
    card_number: str | None = Field(None, description="Masked, last four digits only.")
    card_holder: str | None = None
    expiry_month: str | None = None
    expiry_year: str | None = None
    card_brand: str | None = None
    upi_id: str | None = None
    wallet_provider: str | None = None
    wallet_id: str | None = None
    is_default: bool
    is_active: bool
    created_at: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def _mask_card(cls, value):
        last4 = getattr(value, "card_last4", None)
        if last4 is None:
            return value
        fields = {key: getattr(value, key, None) for key in cls.model_fields if key != "card_number"}
        fields["card_number"] = f"**** **** **** {last4}"
        return fields


class UserSummary(CamelModel):
    id: str
    name: str
    email: str
    role: str


class UserProfile(RecordOut):
    name: str
    email: str
    role: str
    auth_provider: str | None = None
    phone: str | None = None
    profile_picture: str | None = None
    bio: str | None = None
    preferences: Preferences = Field(default_factory=Preferences)
    addresses: List[AddressOut] = Field(default_factory=list)
    payment_methods: List[PaymentMethodOut] = Field(default_factory=list)


class ProfilePatch(CamelModel):
    name: str | None = Field(None, min_length=1)
    phone: str | None = None
    bio: str | None = Field(None, max_length=500)
    profile_picture: str | None = None
    preferences: Preferences | None = None


class AddressCreate(CamelModel):
    label: AddressLabel = "home"
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1)
    country: str = "India"
    is_default: bool = False


class AddressPatch(CamelModel):
    address_id: str = Field(..., min_length=1)
    label: AddressLabel | None = None
    street: str | None = Field(None, min_length=1)
    city: str | None = Field(None, min_length=1)
    state: str | None = Field(None, min_length=1)
    zip_code: str | None = Field(None, min_length=1)
    country: str | None = Field(None, min_length=1)
    is_default: bool | None = None


class PaymentMethodCreate(CamelModel):
    type: PaymentMethodType
    card_number: str | None = None
    card_holder: str | None = None
    expiry_month: str | None = Field(None, pattern=r"^(0[1-9]|1[0-2])$")
    expiry_year: str | None = Field(None, pattern=r"^\d{2}(\d{2})?$")
    card_brand: str | None = None
    upi_id: str | None = None
    wallet_provider: str | None = None
    wallet_id: str | None = None
    is_default: bool = False

    @model_validator(mode="after")
    def _check_required_details(self) -> "PaymentMethodCreate":
        if self.type in ("credit_card", "debit_card"):
            digits = "".join(ch for ch in (self.card_number or "") if ch.isdigit())
            if len(digits) < 4:
                raise ValueError("Card number is required for cards")
        if self.type == "upi" and not (self.upi_id or "").strip():
            raise ValueError("UPI ID is required")
        return self


class PaymentMethodPatch(CamelModel):
    payment_method_id: str = Field(..., min_length=1)
    is_default: bool | None = None
    is_active: bool | None = None


class LoginResponse(CamelModel):
    success: bool = True
    message: str = "Login successful"
    token: str
    data: UserSummary


class RegisterResponse(CamelModel):
    success: bool = True
    user_id: str
    message: str = "User registered successfully"
    data: UserSummary
