from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError, UpstreamError, ValidationError
from app.db.models import Booking, Review
from app.models.reviews import ReviewCreate

logger = logging.getLogger("app.reviews")

MIN_RATING = 1
MAX_RATING = 5


@dataclass
class ServiceReviewSummary:
    reviews: list[Review]
    average_rating: float
    total_reviews: int


@dataclass
class BookingReviewState:
    booking: Booking
    review: Review | None

    @property
    def has_review(self) -> bool:
        return self.review is not None


@dataclass
class ReviewService:
    session: Session

    def create_review(self, payload: ReviewCreate) -> Review:
        if not MIN_RATING <= payload.rating <= MAX_RATING:
            raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
        if self.session.get(Booking, payload.booking_id) is None:
            raise NotFoundError("Booking not found", details={"bookingId": payload.booking_id})
        if self._for_booking(payload.booking_id) is not None:
            raise ConflictError("Review already exists for this booking")

        review = Review(**payload.model_dump(), verified=True)
        self.session.add(review)
        try:
            self.session.commit()
        except IntegrityError as exc:
            # unique booking_id; a concurrent insert won the race
            self.session.rollback()
            raise ConflictError("Review already exists for this booking") from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise UpstreamError("Failed to save review") from exc
        logger.info("review.created", extra={"review_id": review.id, "booking_id": review.booking_id})
        return review

    def list_for_service(self, service_id: str) -> ServiceReviewSummary:
        stmt = (
            select(Review)
            .where(Review.service_id == service_id, Review.verified.is_(True))
            .order_by(Review.created_at.desc(), Review.id)
        )
        try:
            reviews = list(self.session.execute(stmt).scalars())
        except SQLAlchemyError as exc:
            raise UpstreamError("Failed to load reviews") from exc

        average = round(sum(r.rating for r in reviews) / len(reviews), 1) if reviews else 0.0
        return ServiceReviewSummary(reviews=reviews, average_rating=average, total_reviews=len(reviews))

    def booking_status(self, booking_id: str) -> BookingReviewState:
        booking = self.session.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError("Booking not found", details={"bookingId": booking_id})
        return BookingReviewState(booking=booking, review=self._for_booking(booking_id))

    def _for_booking(self, booking_id: str) -> Review | None:
        stmt = select(Review).where(Review.booking_id == booking_id)
        return self.session.execute(stmt).scalar_one_or_none()
