from __future__ import annotations

from datetime import datetime
from typing import Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")

EMAIL_PATTERN = r"^\S+@\S+\.\S+$"


class CamelModel(BaseModel):
    """Snake-case attributes, camelCase on the wire; readable from ORM rows."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class RecordOut(CamelModel):
    id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DataResponse(CamelModel, Generic[T]):
    success: bool = True
    data: T


class ListResponse(CamelModel, Generic[T]):
    success: bool = True
    data: List[T] = Field(default_factory=list)


class MessageResponse(CamelModel):
    success: bool = True
    message: str
