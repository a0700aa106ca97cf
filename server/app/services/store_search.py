from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable, Literal, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import AppSettings, get_settings
from app.core.exceptions import UpstreamError, ValidationError
from app.db.models import Store
from app.db.session import Database
from app.models.stores import WEEKDAYS, StoreResult, StoreSearchRequest, StoreSearchResponse
from app.services.geo import EtaModel, bounding_box, haversine_km

logger = logging.getLogger("app.stores.search")

INVALID_COORDINATES = "Invalid latitude or longitude"
DEFAULT_MAX_DISTANCE_M = 5000.0
DEFAULT_NEARBY_LIMIT = 20
MAX_LIMIT = 100

PriceMode = Literal["any", "all"]
Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SearchCriteria:
    latitude: float
    longitude: float
    max_distance_km: float = DEFAULT_MAX_DISTANCE_M / 1000
    min_rating: float = 0.0
    max_rating: float | None = None
    available_bays_only: bool = False
    open_now: bool = False
    services: tuple[str, ...] = ()
    price_min: float | None = None
    price_max: float | None = None
    limit: int = DEFAULT_NEARBY_LIMIT
    skip: int = 0
    timezone: str | None = None

    @property
    def price_filter_active(self) -> bool:
        return self.price_min is not None or self.price_max is not None


@dataclass
class Candidate:
    store: Store
    distance_km: float


def _is_coordinate(value: object, bound: float) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and -bound <= value <= bound


def validate_origin(latitude: object, longitude: object) -> None:
    if not (_is_coordinate(latitude, 90.0) and _is_coordinate(longitude, 180.0)):
        raise ValidationError(INVALID_COORDINATES)


def _parse_float(raw: str | None) -> float | None:
    if raw is None:
        return None
    try:
        value = float(raw.strip())
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _parse_int(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


def criteria_from_query_params(
    *,
    latitude: str | None,
    longitude: str | None,
    max_distance: str | None = None,
    min_rating: str | None = None,
    limit: str | None = None,
) -> SearchCriteria:
    """Nearby-endpoint parameters. Unparseable optional values fall back to their defaults."""

    lat = _parse_float(latitude)
    lon = _parse_float(longitude)
    validate_origin(lat, lon)

    radius_m = _parse_float(max_distance)
    if radius_m is None or radius_m <= 0:
        radius_m = DEFAULT_MAX_DISTANCE_M
    rating_floor = _parse_float(min_rating)
    if rating_floor is None or rating_floor < 0:
        rating_floor = 0.0
    size = _parse_int(limit)
    if size is None or size <= 0:
        size = DEFAULT_NEARBY_LIMIT

    return SearchCriteria(
        latitude=lat,  # type: ignore[arg-type]
        longitude=lon,  # type: ignore[arg-type]
        max_distance_km=radius_m / 1000,
        min_rating=rating_floor,
        limit=min(size, MAX_LIMIT),
    )


def criteria_from_request(request: StoreSearchRequest) -> SearchCriteria:
    validate_origin(request.latitude, request.longitude)
    if request.min_rating > request.max_rating:
        raise ValidationError("minRating cannot exceed maxRating.")
    if (
        request.price_min is not None
        and request.price_max is not None
        and request.price_min > request.price_max
    ):
        raise ValidationError("priceMin cannot exceed priceMax.")
    return SearchCriteria(
        latitude=float(request.latitude),  # type: ignore[arg-type]
        longitude=float(request.longitude),  # type: ignore[arg-type]
        max_distance_km=request.max_distance / 1000,
        min_rating=request.min_rating,
        max_rating=request.max_rating,
        available_bays_only=request.available_bays_only,
        open_now=request.open_now,
        services=tuple(request.services),
        price_min=request.price_min,
        price_max=request.price_max,
        limit=request.limit,
        skip=request.skip,
        timezone=request.timezone,
    )


def fetch_candidates(session: Session, criteria: SearchCriteria) -> list[Candidate]:
    """Proximity query: every active store within the radius and rating bounds, nearest first.

    Pagination is left to the caller so it can run after the in-memory filters.
    """

    box = bounding_box(criteria.latitude, criteria.longitude, criteria.max_distance_km)
    stmt = (
        select(Store)
        .where(
            Store.is_active.is_(True),
            Store.rating >= criteria.min_rating,
            Store.latitude.between(box.min_latitude, box.max_latitude),
            Store.longitude.between(box.min_longitude, box.max_longitude),
        )
        .order_by(Store.created_at, Store.id)
    )
    if criteria.max_rating is not None:
        stmt = stmt.where(Store.rating <= criteria.max_rating)

    candidates: list[Candidate] = []
    for store in session.execute(stmt).scalars():
        distance = haversine_km(criteria.latitude, criteria.longitude, store.latitude, store.longitude)
        if distance <= criteria.max_distance_km:
            candidates.append(Candidate(store=store, distance_km=distance))

    candidates.sort(key=lambda candidate: candidate.distance_km)
    return candidates


# -- filter chain ----------------------------------------------------------

Predicate = Callable[[Candidate], bool]


def within_distance(max_distance_km: float) -> Predicate:
    return lambda candidate: candidate.distance_km <= max_distance_km


def within_rating(min_rating: float, max_rating: float | None) -> Predicate:
    def predicate(candidate: Candidate) -> bool:
        rating = candidate.store.rating or 0.0
        if rating < min_rating:
            return False
        return max_rating is None or rating <= max_rating

    return predicate


def has_available_bays(candidate: Candidate) -> bool:
    return candidate.store.available_bays > 0


def offers_any_service(requested: Iterable[str]) -> Predicate:
    needles = [item.lower() for item in requested if item]

    def predicate(candidate: Candidate) -> bool:
        names = [str(item.get("name") or "").lower() for item in candidate.store.services or []]
        return any(needle in name for name in names for needle in needles)

    return predicate


def priced_within(price_min: float | None, price_max: float | None, mode: PriceMode = "any") -> Predicate:
    low = price_min if price_min is not None else -math.inf
    high = price_max if price_max is not None else math.inf

    def in_range(item: dict) -> bool:
        price = item.get("price")
        return isinstance(price, (int, float)) and low <= price <= high

    def predicate(candidate: Candidate) -> bool:
        offered = candidate.store.services or []
        if not offered:
            return False
        if mode == "all":
            return all(in_range(item) for item in offered)
        return any(in_range(item) for item in offered)

    return predicate


def is_open_at(hours: dict | None, moment: datetime) -> bool:
    """[open, close) on zero-padded "HH:MM" strings; a day without hours is closed."""
    if not hours:
        return False
    day = hours.get(WEEKDAYS[moment.weekday()])
    if not isinstance(day, dict):
        return False
    opens, closes = day.get("open"), day.get("close")
    if not opens or not closes:
        return False
    current = moment.strftime("%H:%M")
    return opens <= current < closes


def open_at(moment: datetime) -> Predicate:
    return lambda candidate: is_open_at(candidate.store.hours, moment)


def build_filters(
    criteria: SearchCriteria,
    *,
    now: datetime | None = None,
    price_mode: PriceMode = "any",
) -> list[Predicate]:
    filters: list[Predicate] = [
        within_distance(criteria.max_distance_km),
        within_rating(criteria.min_rating, criteria.max_rating),
    ]
    if criteria.available_bays_only:
        filters.append(has_available_bays)
    if criteria.services:
        filters.append(offers_any_service(criteria.services))
    if criteria.price_filter_active:
        filters.append(priced_within(criteria.price_min, criteria.price_max, price_mode))
    if criteria.open_now:
        if now is None:
            raise ValueError("open_now filtering requires the local time.")
        filters.append(open_at(now))
    return filters


def apply_filters(candidates: Sequence[Candidate], filters: Sequence[Predicate]) -> list[Candidate]:
    return [candidate for candidate in candidates if all(check(candidate) for check in filters)]


def rank_by_distance(candidates: Iterable[Candidate]) -> list[Candidate]:
    # sorted() is stable: equal distances keep their filter-chain order.
    return sorted(candidates, key=lambda candidate: candidate.distance_km)


def paginate(candidates: Sequence[Candidate], skip: int, limit: int) -> list[Candidate]:
    return list(candidates[skip : skip + limit])


def assemble(candidates: Sequence[Candidate], eta: EtaModel) -> StoreSearchResponse:
    results: list[StoreResult] = []
    for candidate in candidates:
        result = StoreResult.model_validate(
            {
                **_store_fields(candidate.store),
                "distance": round(candidate.distance_km, 2),
                "estimated_time": eta.estimate_minutes(candidate.distance_km),
                "available_bays": candidate.store.available_bays,
            }
        )
        results.append(result)
    return StoreSearchResponse(success=True, count=len(results), data=results)


def _store_fields(store: Store) -> dict:
    return {column.key: getattr(store, column.key) for column in Store.__mapper__.column_attrs}


@dataclass
class StoreSearchService:
    """Runs the nearby pipeline. The store query gets its own session on a worker thread."""

    session_factory: Callable[[], Session]
    eta: EtaModel = field(default_factory=EtaModel)
    clock: Clock = _utcnow
    price_mode: PriceMode = "any"
    default_timezone: str = "UTC"
    query_timeout: float | None = 5.0

    @classmethod
    def from_database(cls, database: Database, settings: AppSettings | None = None) -> "StoreSearchService":
        settings = settings or get_settings()
        return cls(
            session_factory=database.session,
            eta=EtaModel(
                speed_km_per_min=settings.eta_speed_km_per_min,
                wait_minutes=settings.eta_wait_minutes,
            ),
            price_mode=settings.price_filter_mode,
            default_timezone=settings.default_timezone,
            query_timeout=settings.store_query_timeout_sec,
        )

    async def nearby(
        self,
        *,
        latitude: str | None,
        longitude: str | None,
        max_distance: str | None = None,
        min_rating: str | None = None,
        limit: str | None = None,
    ) -> StoreSearchResponse:
        criteria = criteria_from_query_params(
            latitude=latitude,
            longitude=longitude,
            max_distance=max_distance,
            min_rating=min_rating,
            limit=limit,
        )
        return await self.run(criteria)

    async def search(self, request: StoreSearchRequest) -> StoreSearchResponse:
        return await self.run(criteria_from_request(request))

    async def run(self, criteria: SearchCriteria) -> StoreSearchResponse:
        validate_origin(criteria.latitude, criteria.longitude)
        now = self._local_now(criteria.timezone) if criteria.open_now else None
        filters = build_filters(criteria, now=now, price_mode=self.price_mode)

        candidates = await self._fetch(criteria)
        survivors = rank_by_distance(apply_filters(candidates, filters))
        response = assemble(paginate(survivors, criteria.skip, criteria.limit), self.eta)
        logger.info(
            "stores.search",
            extra={"candidates": len(candidates), "matched": len(survivors), "returned": response.count},
        )
        return response

    def _local_now(self, zone_name: str | None) -> datetime:
        name = zone_name or self.default_timezone
        try:
            zone = ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValidationError(f"Unknown timezone: {name}", details={"field": "timezone"}) from exc
        moment = self.clock()
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(zone)

    async def _fetch(self, criteria: SearchCriteria) -> list[Candidate]:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._fetch_in_own_session, criteria),
                timeout=self.query_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise UpstreamError("Failed to search stores.") from exc
        except SQLAlchemyError as exc:
            raise UpstreamError("Failed to search stores.") from exc

    def _fetch_in_own_session(self, criteria: SearchCriteria) -> list[Candidate]:
        # may outlive the request on timeout; owns its session
        with self.session_factory() as session:
            return fetch_candidates(session, criteria)
