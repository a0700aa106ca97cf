from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.core.exceptions import UpstreamError, ValidationError
from app.db.session import Database
from app.models.stores import StoreSearchRequest
from app.services import store_search
from app.services.geo import EtaModel
from app.services.store_search import (
    INVALID_COORDINATES,
    SearchCriteria,
    StoreSearchService,
    criteria_from_query_params,
    criteria_from_request,
    fetch_candidates,
)

NYC = (40.7128, -74.0060)
ONE_KM_NORTH = (40.7128 + 1 / 111.19492664, -74.0060)
LOS_ANGELES = (34.0522, -118.2437)


def make_service(engine, **overrides) -> StoreSearchService:
    return StoreSearchService(session_factory=Database(engine).session, **overrides)


@pytest.mark.asyncio
async def test_nearby_returns_close_store_and_excludes_far_one(engine, make_store) -> None:
    make_store(name="Around the corner", latitude=ONE_KM_NORTH[0], longitude=ONE_KM_NORTH[1])
    make_store(name="Across the country", latitude=LOS_ANGELES[0], longitude=LOS_ANGELES[1])

    response = await make_service(engine).nearby(
        latitude=str(NYC[0]), longitude=str(NYC[1]), max_distance="5000"
    )

    assert response.success is True
    assert response.count == 1
    result = response.data[0]
    assert result.name == "Around the corner"
    assert result.distance == pytest.approx(1.0, abs=0.01)
    assert result.estimated_time == 6
    assert result.available_bays == 8


@pytest.mark.asyncio
async def test_results_are_sorted_by_distance(engine, make_store) -> None:
    make_store(name="far", latitude=NYC[0] + 0.03, longitude=NYC[1])
    make_store(name="near", latitude=NYC[0] + 0.01, longitude=NYC[1])
    make_store(name="middle", latitude=NYC[0] - 0.02, longitude=NYC[1])

    response = await make_service(engine).run(SearchCriteria(latitude=NYC[0], longitude=NYC[1]))

    assert [store.name for store in response.data] == ["near", "middle", "far"]
    distances = [store.distance for store in response.data]
    assert distances == sorted(distances)
    assert response.count == len(response.data)


@pytest.mark.asyncio
async def test_available_bays_only_drops_full_store(engine, make_store) -> None:
    make_store(name="Full", capacity=5, current_queue=5)
    make_store(name="Free", capacity=5, current_queue=1, latitude=NYC[0] + 0.001)

    request = StoreSearchRequest(latitude=NYC[0], longitude=NYC[1], available_bays_only=True)
    response = await make_service(engine).search(request)

    assert [store.name for store in response.data] == ["Free"]


@pytest.mark.asyncio
async def test_inactive_and_low_rated_stores_are_not_candidates(engine, make_store) -> None:
    make_store(name="Closed for good", is_active=False)
    make_store(name="Poorly rated", rating=2.0)
    make_store(name="Good", rating=4.7)

    response = await make_service(engine).nearby(latitude="40.7128", longitude="-74.0060", min_rating="3")

    assert [store.name for store in response.data] == ["Good"]


@pytest.mark.asyncio
async def test_open_now_uses_injected_clock_and_zone(engine, make_store) -> None:
    make_store(name="Day shift", hours={"monday": {"open": "08:00", "close": "18:00"}})
    # 2026-10-19 13:00 UTC is 09:00 in New York
    clock = lambda: datetime(2026, 10, 19, 13, 0, tzinfo=timezone.utc)

    service = make_service(engine, clock=clock, default_timezone="America/New_York")
    open_response = await service.search(StoreSearchRequest(latitude=NYC[0], longitude=NYC[1], open_now=True))
    tokyo = StoreSearchRequest(latitude=NYC[0], longitude=NYC[1], open_now=True, timezone="Asia/Tokyo")
    closed_response = await service.search(tokyo)

    assert open_response.count == 1
    assert closed_response.count == 0


@pytest.mark.asyncio
async def test_unknown_timezone_is_rejected(engine) -> None:
    request = StoreSearchRequest(latitude=NYC[0], longitude=NYC[1], open_now=True, timezone="Mars/Olympus")

    with pytest.raises(ValidationError):
        await make_service(engine).search(request)


@pytest.mark.asyncio
async def test_empty_result_is_success(engine) -> None:
    response = await make_service(engine).nearby(latitude="0", longitude="0")

    assert response.success is True
    assert response.count == 0
    assert response.data == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "latitude, longitude",
    [(None, "-74.0"), ("abc", "-74.0"), ("91", "0"), ("0", "-180.5"), ("nan", "0"), ("", "")],
)
async def test_invalid_origin_is_rejected_before_querying(engine, monkeypatch, latitude, longitude) -> None:
    def fail(*args, **kwargs):
        raise AssertionError("data store must not be queried")

    monkeypatch.setattr(store_search, "fetch_candidates", fail)

    with pytest.raises(ValidationError) as excinfo:
        await make_service(engine).nearby(latitude=latitude, longitude=longitude)

    assert excinfo.value.message == INVALID_COORDINATES


@pytest.mark.asyncio
async def test_timeout_surfaces_as_upstream_error(engine, monkeypatch) -> None:
    def slow(*args, **kwargs):
        time.sleep(0.2)
        return []

    monkeypatch.setattr(store_search, "fetch_candidates", slow)
    service = make_service(engine, query_timeout=0.01)

    with pytest.raises(UpstreamError):
        await service.run(SearchCriteria(latitude=NYC[0], longitude=NYC[1]))


@pytest.mark.asyncio
async def test_data_store_failure_surfaces_as_upstream_error(engine, monkeypatch) -> None:
    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(store_search, "fetch_candidates", broken)

    with pytest.raises(UpstreamError) as excinfo:
        await make_service(engine).run(SearchCriteria(latitude=NYC[0], longitude=NYC[1]))

    assert "locked" not in excinfo.value.message


def test_fetch_returns_every_store_in_radius_nearest_first(session, make_store) -> None:
    for index in range(5):
        make_store(name=f"store-{index}", latitude=NYC[0] + 0.002 * (5 - index))

    found = fetch_candidates(session, SearchCriteria(latitude=NYC[0], longitude=NYC[1], skip=1, limit=2))

    assert [c.store.name for c in found] == ["store-4", "store-3", "store-2", "store-1", "store-0"]


@pytest.mark.asyncio
async def test_skip_and_limit_apply_after_distance_sort(engine, make_store) -> None:
    for index in range(5):
        make_store(name=f"store-{index}", latitude=NYC[0] + 0.002 * (5 - index))

    response = await make_service(engine).run(SearchCriteria(latitude=NYC[0], longitude=NYC[1], skip=1, limit=2))

    assert [store.name for store in response.data] == ["store-3", "store-2"]


@pytest.mark.asyncio
async def test_page_is_cut_from_filtered_stores(engine, make_store) -> None:
    for index in range(3):
        make_store(
            name=f"wash-only-{index}",
            latitude=NYC[0] + 0.001 * (index + 1),
            services=[{"name": "Basic Wash", "price": 10}],
        )
    make_store(name="Detailer", latitude=NYC[0] + 0.01, services=[{"name": "Interior Detailing", "price": 40}])

    criteria = SearchCriteria(latitude=NYC[0], longitude=NYC[1], services=("detail",), limit=2)
    response = await make_service(engine).run(criteria)

    assert [store.name for store in response.data] == ["Detailer"]


def test_query_params_fall_back_to_defaults() -> None:
    search = criteria_from_query_params(
        latitude="40.7", longitude="-74.0", max_distance="far", min_rating="-2", limit="0"
    )

    assert search.max_distance_km == 5.0
    assert search.min_rating == 0.0
    assert search.limit == 20


def test_query_params_cap_limit_and_convert_meters() -> None:
    search = criteria_from_query_params(latitude="40.7", longitude="-74.0", max_distance="2500", limit="500")

    assert search.max_distance_km == 2.5
    assert search.limit == 100


def test_request_rejects_inverted_ranges() -> None:
    with pytest.raises(ValidationError):
        criteria_from_request(StoreSearchRequest(latitude=1, longitude=1, min_rating=4, max_rating=3))
    with pytest.raises(ValidationError):
        criteria_from_request(StoreSearchRequest(latitude=1, longitude=1, price_min=50, price_max=10))


def test_from_database_reads_settings(engine, settings) -> None:
    tuned = settings.model_copy(
        update={"eta_speed_km_per_min": 1.0, "eta_wait_minutes": 2, "price_filter_mode": "all"}
    )

    service = StoreSearchService.from_database(Database(engine), tuned)

    assert service.eta == EtaModel(speed_km_per_min=1.0, wait_minutes=2)
    assert service.price_mode == "all"


class RecordingSession(Session):
    closed_count = 0

    def close(self) -> None:
        type(self).closed_count += 1
        super().close()


@pytest.mark.asyncio
async def test_timed_out_query_closes_its_own_session(engine, monkeypatch) -> None:
    used: list[Session] = []

    def slow(session, criteria):
        used.append(session)
        time.sleep(0.2)
        return []

    monkeypatch.setattr(store_search, "fetch_candidates", slow)
    monkeypatch.setattr(RecordingSession, "closed_count", 0)
    service = make_service(engine, query_timeout=0.01)
    service.session_factory = lambda: RecordingSession(engine)

    with pytest.raises(UpstreamError):
        await service.run(SearchCriteria(latitude=NYC[0], longitude=NYC[1]))
    await asyncio.sleep(0.4)

    assert len(used) == 1
    assert isinstance(used[0], RecordingSession)
    assert RecordingSession.closed_count == 1
