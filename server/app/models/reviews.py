from __future__ import annotations

from typing import List

from pydantic import Field

from app.models.common import CamelModel, RecordOut


class ReviewCreate(CamelModel):
    booking_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    service_id: str = Field(..., min_length=1)
    rating: int
    user_name: str = ""
    service_name: str = ""
    vehicle_type: str = ""
    comment: str = Field("", max_length=500)


class ReviewOut(RecordOut):
    booking_id: str
    user_id: str
    user_name: str
    service_id: str
    service_name: str
    vehicle_type: str
    rating: int
    comment: str = ""
    verified: bool = True


class ServiceReviews(CamelModel):
    success: bool = True
    data: List[ReviewOut] = Field(default_factory=list)
    average_rating: float = 0
    total_reviews: int = 0


class BookingReviewSummary(CamelModel):
    id: str
    service: str
    vehicle_type: str
    brand: str
    model: str
    status: str = Field(..., validation_alias="booking_status")
    date: str | None = None


class BookingReviewStatus(CamelModel):
    success: bool = True
    booking: BookingReviewSummary
    has_review: bool
    review: ReviewOut | None = None
