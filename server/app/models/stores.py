from __future__ import annotations

import math
from typing import Any, List, Literal

from pydantic import Field, field_validator

from app.models.common import CamelModel, RecordOut

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class GeoPoint(CamelModel):
    type: Literal["Point"] = "Point"
    coordinates: List[float] = Field(..., min_length=2, max_length=2, description="[longitude, latitude]")


class StoreServiceItem(CamelModel):
    name: str = Field(..., min_length=1)
    price: float = Field(0, ge=0)
    duration: int | None = Field(None, ge=0, description="Duration in minutes.")


class DayHours(CamelModel):
    open: str = Field(..., pattern=HHMM_PATTERN)
    close: str = Field(..., pattern=HHMM_PATTERN)


def _validate_week(value: dict[str, Any] | None) -> dict[str, Any] | None:
    if value is None:
        return value
    unknown = sorted(set(value) - set(WEEKDAYS))
    if unknown:
        raise ValueError(f"Unknown weekday(s) in hours: {', '.join(unknown)}")
    return value


class StoreOut(RecordOut):
    name: str
    description: str | None = None
    address: str
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    country: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    location: GeoPoint
    latitude: float
    longitude: float
    services: List[StoreServiceItem] = Field(default_factory=list)
    hours: dict[str, DayHours | None] = Field(default_factory=dict)
    facilities: dict[str, bool] = Field(default_factory=dict)
    photos: List[str] = Field(default_factory=list)
    rating: float = 0
    review_count: int = 0
    capacity: int = 0
    current_queue: int = 0
    estimated_wait_time: int = 0
    is_active: bool = True


class StoreResult(StoreOut):
    distance: float = Field(..., description="Kilometers from the search origin, 2 decimals.")
    estimated_time: int = Field(..., description="Estimated minutes until service.")
    available_bays: int = Field(..., ge=0)


class StoreSearchResponse(CamelModel):
    success: bool = True
    count: int = 0
    data: List[StoreResult] = Field(default_factory=list)


class StoreSearchRequest(CamelModel):
    latitude: float | None = None
    longitude: float | None = None
    max_distance: float = Field(5000, gt=0, description="Search radius in meters.")
    min_rating: float = Field(0, ge=0, le=5)
    max_rating: float = Field(5, ge=0, le=5)
    available_bays_only: bool = False
    open_now: bool = False
    services: List[str] = Field(default_factory=list)
    price_min: float | None = Field(None, ge=0)
    price_max: float | None = Field(None, ge=0)
    limit: int = Field(20, ge=1, le=100)
    skip: int = Field(0, ge=0)
    timezone: str | None = Field(None, description="IANA zone used for the open-now check.")

    @field_validator("services")
    @classmethod
    def _clean_services(cls, value: List[str]) -> List[str]:
        return [item.strip() for item in value if item and item.strip()]


class StoreCreate(CamelModel):
    name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    description: str | None = None
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str | None = None
    phone: str = ""
    email: str | None = None
    website: str | None = None
    services: List[StoreServiceItem] = Field(default_factory=list)
    hours: dict[str, DayHours | None] = Field(default_factory=dict)
    facilities: dict[str, bool] = Field(default_factory=dict)
    photos: List[str] = Field(default_factory=list)
    rating: float = Field(0, ge=0, le=5)
    review_count: int = Field(0, ge=0)
    capacity: int = Field(0, ge=0)
    current_queue: int = Field(0, ge=0)
    estimated_wait_time: int = Field(0, ge=0)
    is_active: bool = True

    @field_validator("name", "address")
    @classmethod
    def _strip(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("must not be blank")
        return cleaned

    @field_validator("latitude", "longitude")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("must be a finite number")
        return value

    @field_validator("hours")
    @classmethod
    def _check_hours(cls, value: dict[str, Any] | None) -> dict[str, Any] | None:
        return _validate_week(value)


class StorePatch(CamelModel):
    """Every field optional; only fields present in the request are applied."""

    name: str | None = Field(None, min_length=1)
    address: str | None = Field(None, min_length=1)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    description: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    country: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    services: List[StoreServiceItem] | None = None
    hours: dict[str, DayHours | None] | None = None
    facilities: dict[str, bool] | None = None
    photos: List[str] | None = None
    rating: float | None = Field(None, ge=0, le=5)
    review_count: int | None = Field(None, ge=0)
    capacity: int | None = Field(None, ge=0)
    current_queue: int | None = Field(None, ge=0)
    estimated_wait_time: int | None = Field(None, ge=0)
    is_active: bool | None = None

    @field_validator("hours")
    @classmethod
    def _check_hours(cls, value: dict[str, Any] | None) -> dict[str, Any] | None:
        return _validate_week(value)
