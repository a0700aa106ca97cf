from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from app.models.common import EMAIL_PATTERN, CamelModel


class ContactCreate(CamelModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    message: str = Field(..., min_length=1, max_length=5000)

    @field_validator("name", "email", "message", mode="before")
    @classmethod
    def _strip(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.lower()


class ContactOut(CamelModel):
    id: str
    name: str
    email: str
    message: str
    created_at: datetime | None = None


class ContactCreatedResponse(CamelModel):
    success: bool = True
    contact_id: str
    data: ContactOut
