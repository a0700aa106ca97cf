from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from app.services.store_search import (
    Candidate,
    SearchCriteria,
    apply_filters,
    build_filters,
    has_available_bays,
    is_open_at,
    offers_any_service,
    priced_within,
    rank_by_distance,
    within_rating,
)

WEEK = {
    day: {"open": "08:00", "close": "18:00"}
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday")
}

# 2026-10-19 is a Monday
MONDAY_NOON = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def candidate(distance_km: float = 1.0, **store_fields) -> Candidate:
    defaults = {
        "name": "Store",
        "rating": 4.0,
        "capacity": 10,
        "current_queue": 2,
        "services": [{"name": "Basic Wash", "price": 20.0}],
        "hours": WEEK,
    }
    defaults.update(store_fields)
    defaults["available_bays"] = max(0, defaults["capacity"] - defaults["current_queue"])
    return Candidate(store=SimpleNamespace(**defaults), distance_km=distance_km)


def criteria(**overrides) -> SearchCriteria:
    return SearchCriteria(latitude=40.7128, longitude=-74.0060, **overrides)


def test_available_bays_excludes_full_store() -> None:
    assert not has_available_bays(candidate(capacity=5, current_queue=5))
    assert not has_available_bays(candidate(capacity=5, current_queue=7))
    assert has_available_bays(candidate(capacity=5, current_queue=4))


def test_rating_window_is_inclusive() -> None:
    check = within_rating(3.5, 4.5)

    assert check(candidate(rating=3.5))
    assert check(candidate(rating=4.5))
    assert not check(candidate(rating=3.4))
    assert not check(candidate(rating=4.6))


def test_service_match_is_case_insensitive_substring() -> None:
    store = candidate(services=[{"name": "Premium Wash"}, {"name": "Interior Clean"}])

    assert offers_any_service(["premium"])(store)
    assert offers_any_service(["detail", "INTERIOR"])(store)
    assert not offers_any_service(["ceramic"])(store)


def test_price_filter_any_mode_needs_one_service_in_range() -> None:
    store = candidate(services=[{"name": "Basic", "price": 15.0}, {"name": "Detail", "price": 80.0}])

    assert priced_within(10, 20, "any")(store)
    assert not priced_within(30, 50, "any")(store)


def test_price_filter_all_mode_needs_every_service_in_range() -> None:
    store = candidate(services=[{"name": "Basic", "price": 15.0}, {"name": "Detail", "price": 80.0}])

    assert not priced_within(10, 20, "all")(store)
    assert priced_within(10, 100, "all")(store)


def test_price_filter_excludes_store_without_services() -> None:
    assert not priced_within(None, 100)(candidate(services=[]))


@pytest.mark.parametrize(
    "moment, expected",
    [
        (datetime(2026, 10, 19, 8, 0), True),
        (datetime(2026, 10, 19, 17, 59), True),
        (datetime(2026, 10, 19, 18, 0), False),
        (datetime(2026, 10, 19, 7, 59), False),
        (datetime(2026, 10, 25, 12, 0), False),  # sunday has no hours
    ],
)
def test_open_window_is_half_open(moment: datetime, expected: bool) -> None:
    assert is_open_at(WEEK, moment) is expected


def test_open_check_fails_closed_without_hours() -> None:
    assert not is_open_at({}, MONDAY_NOON)
    assert not is_open_at(None, MONDAY_NOON)
    assert not is_open_at({"monday": None}, MONDAY_NOON)


def test_filter_chain_output_is_subset_satisfying_every_predicate() -> None:
    stores = [
        candidate(0.5, name="full", capacity=3, current_queue=3),
        candidate(1.0, name="low-rated", rating=2.0),
        candidate(1.5, name="no-match", services=[{"name": "Ceramic Coating", "price": 99.0}]),
        candidate(2.0, name="keeper"),
        candidate(6.0, name="too-far"),
    ]
    search = criteria(min_rating=3.0, available_bays_only=True, services=("wash",), price_max=50.0)
    filters = build_filters(search, price_mode="any")

    survivors = apply_filters(stores, filters)

    assert [c.store.name for c in survivors] == ["keeper"]
    assert all(all(check(c) for check in filters) for c in survivors)


def test_open_now_filter_requires_local_time() -> None:
    with pytest.raises(ValueError):
        build_filters(criteria(open_now=True))


def test_open_now_filter_uses_supplied_moment() -> None:
    stores = [candidate(name="open"), candidate(name="closed", hours={})]
    filters = build_filters(criteria(open_now=True), now=MONDAY_NOON)

    assert [c.store.name for c in apply_filters(stores, filters)] == ["open"]


def test_ranking_orders_by_distance_and_keeps_ties_stable() -> None:
    stores = [
        candidate(3.0, name="c"),
        candidate(1.0, name="a1"),
        candidate(2.0, name="b"),
        candidate(1.0, name="a2"),
    ]

    ranked = rank_by_distance(stores)

    assert [c.store.name for c in ranked] == ["a1", "a2", "b", "c"]
