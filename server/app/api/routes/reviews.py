from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.db.session import get_session
from app.models.common import DataResponse
from app.models.reviews import (
    BookingReviewStatus,
    BookingReviewSummary,
    ReviewCreate,
    ReviewOut,
    ServiceReviews,
)
from app.services.reviews import ReviewService

router = APIRouter(prefix="/reviews", tags=["reviews"])


def get_review_service(session: Session = Depends(get_session)) -> ReviewService:
    return ReviewService(session)


@router.post("", response_model=DataResponse[ReviewOut], status_code=status.HTTP_201_CREATED)
def create_review(payload: ReviewCreate, service: ReviewService = Depends(get_review_service)) -> DataResponse[ReviewOut]:
    return DataResponse[ReviewOut](data=ReviewOut.model_validate(service.create_review(payload)))


@router.get("", response_model=ServiceReviews)
def list_reviews(
    service_id: str = Query(..., alias="serviceId", min_length=1),
    service: ReviewService = Depends(get_review_service),
) -> ServiceReviews:
    summary = service.list_for_service(service_id)
    return ServiceReviews(
        data=[ReviewOut.model_validate(review) for review in summary.reviews],
        average_rating=summary.average_rating,
        total_reviews=summary.total_reviews,
    )


@router.get("/booking/{booking_id}", response_model=BookingReviewStatus)
def booking_review_status(
    booking_id: str,
    service: ReviewService = Depends(get_review_service),
) -> BookingReviewStatus:
    state = service.booking_status(booking_id)
    return BookingReviewStatus(
        booking=BookingReviewSummary.model_validate(state.booking),
        has_review=state.has_review,
        review=ReviewOut.model_validate(state.review) if state.review is not None else None,
    )
