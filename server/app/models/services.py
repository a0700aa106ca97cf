from __future__ import annotations

from typing import List

from pydantic import Field, field_validator

from app.models.common import CamelModel, RecordOut


class VehiclePrices(CamelModel):
    bike: float | None = Field(None, ge=0)
    hatchback: float | None = Field(None, ge=0)
    sedan: float | None = Field(None, ge=0)
    suv: float | None = Field(None, ge=0)
    luxury: float | None = Field(None, ge=0)
    pickup: float | None = Field(None, ge=0)
    truck: float | None = Field(None, ge=0)
    ev: float | None = Field(None, ge=0)
    any: float | None = Field(None, ge=0)

    def as_dict(self) -> dict[str, float]:
        return {key: value for key, value in self.model_dump().items() if value is not None}


class ServiceOut(RecordOut):
    name: str
    description: str | None = None
    price: float | None = None
    prices: dict[str, float] = Field(default_factory=dict)
    duration_min: int | None = None
    vehicle_tags: List[str] = Field(default_factory=list)
    is_active: bool = True


class ServiceCreate(CamelModel):
    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    description: str = ""
    prices: VehiclePrices = Field(default_factory=VehiclePrices)
    duration_min: int | None = Field(None, ge=0)
    vehicle_tags: List[str] = Field(default_factory=list)
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("must not be blank")
        return cleaned


class ServicePatch(CamelModel):
    """Partial update; `prices` is merged key by key into the stored prices."""

    name: str | None = Field(None, min_length=1)
    description: str | None = None
    price: float | None = Field(None, ge=0)
    prices: VehiclePrices | None = None
    duration_min: int | None = Field(None, ge=0)
    vehicle_tags: List[str] | None = None
    is_active: bool | None = None
