from __future__ import annotations

import argparse
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, List

from pydantic import BaseModel, Field, ValidationError
from sqlalchemy import create_engine, select
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import AppSettings
from app.db.base import Base
from app.db.models import Service, Store, geo_point
from app.db.session import resolve_database_url
from app.models.services import VehiclePrices
from app.models.stores import StoreCreate

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
logger = logging.getLogger("seed_stores")

DEFAULT_SQLITE_DB_URL = "sqlite:///./data/sqlite/carwash.db"

WEEKDAY_HOURS = {"open": "08:00", "close": "18:00"}


def _week(weekday: dict[str, str], saturday: dict[str, str], sunday: dict[str, str] | None) -> dict[str, Any]:
    hours: dict[str, Any] = {
        day: dict(weekday) for day in ("monday", "tuesday", "wednesday", "thursday", "friday")
    }
    hours["saturday"] = dict(saturday)
    hours["sunday"] = dict(sunday) if sunday else None
    return hours


SAMPLE_STORES: list[dict[str, Any]] = [
    {
        "name": "Downtown Wash Center",
        "description": "Premium car washing facility in the heart of the city",
        "address": "123 Main Street",
        "city": "New York",
        "state": "NY",
        "zip": "10001",
        "country": "USA",
        "phone": "+1-555-123-4567",
        "email": "downtown@carwash.com",
        "latitude": 40.7128,
        "longitude": -74.006,
        "services": [
            {"name": "Basic Wash", "price": 19.99, "duration": 15},
            {"name": "Premium Wash", "price": 29.99, "duration": 30},
            {"name": "Full Detail", "price": 49.99, "duration": 60},
            {"name": "Interior Clean", "price": 34.99, "duration": 45},
        ],
        "hours": _week(WEEKDAY_HOURS, {"open": "09:00", "close": "19:00"}, {"open": "10:00", "close": "17:00"}),
        "facilities": {"hasParking": True, "hasWaitingArea": True, "hasRestroom": True, "hasWifi": True},
        "rating": 4.8,
        "reviewCount": 247,
        "capacity": 10,
        "currentQueue": 2,
        "estimatedWaitTime": 5,
    },
    {
        "name": "Uptown Wash Zone",
        "description": "Fast and reliable car washing in uptown area",
        "address": "456 Oak Avenue",
        "city": "New York",
        "state": "NY",
        "zip": "10021",
        "country": "USA",
        "phone": "+1-555-987-6543",
        "latitude": 40.7806,
        "longitude": -73.9657,
        "services": [
            {"name": "Basic Wash", "price": 17.99, "duration": 15},
            {"name": "Premium Wash", "price": 27.99, "duration": 30},
            {"name": "Interior Clean", "price": 32.99, "duration": 45},
        ],
        "hours": _week(
            {"open": "09:00", "close": "19:00"},
            {"open": "08:00", "close": "20:00"},
            {"open": "10:00", "close": "18:00"},
        ),
        "facilities": {"hasParking": True, "hasWaitingArea": True},
        "rating": 4.3,
        "reviewCount": 89,
        "capacity": 8,
        "currentQueue": 1,
        "estimatedWaitTime": 3,
    },
    {
        "name": "Premium Auto Spa",
        "description": "Luxury car washing and detailing services",
        "address": "789 Park Lane",
        "city": "New York",
        "state": "NY",
        "zip": "10075",
        "country": "USA",
        "phone": "+1-555-456-7890",
        "latitude": 40.7681,
        "longitude": -73.9597,
        "services": [
            {"name": "Premium Wash", "price": 39.99, "duration": 30},
            {"name": "Full Detail", "price": 69.99, "duration": 90},
            {"name": "Ceramic Coating", "price": 99.99, "duration": 120},
        ],
        "hours": _week(
            {"open": "07:00", "close": "20:00"},
            {"open": "08:00", "close": "20:00"},
            {"open": "09:00", "close": "19:00"},
        ),
        "facilities": {"hasParking": True, "hasWaitingArea": True, "hasRestroom": True, "hasWifi": True},
        "rating": 4.9,
        "reviewCount": 156,
        "capacity": 5,
        "currentQueue": 5,
        "estimatedWaitTime": 45,
    },
]

SAMPLE_SERVICES: list[dict[str, Any]] = [
    {
        "name": "Bike Basic Wash",
        "description": "Quick foam wash for bikes and scooters; gentle rinse and wipe.",
        "durationMin": 10,
        "vehicleTags": ["bike"],
        "prices": {"bike": 199},
    },
    {
        "name": "Hatchback Express Wash",
        "description": "Exterior foam wash and quick interior wipe for hatchbacks.",
        "durationMin": 25,
        "vehicleTags": ["hatchback"],
        "prices": {"hatchback": 399},
    },
    {
        "name": "Sedan Premium Wash",
        "description": "Exterior foam, interior vacuum, mats and dashboard sanitize.",
        "durationMin": 30,
        "vehicleTags": ["sedan"],
        "prices": {"sedan": 699},
    },
    {
        "name": "SUV Deep Clean",
        "description": "Pressure rinse, foam and interior vacuum for SUVs.",
        "durationMin": 40,
        "vehicleTags": ["suv"],
        "prices": {"suv": 899},
    },
    {
        "name": "Interior Spa",
        "description": "Steam and vacuum, upholstery refresh, dashboard and console detail.",
        "durationMin": 45,
        "vehicleTags": ["bike", "hatchback", "sedan", "suv"],
        "prices": {"bike": 299, "hatchback": 599, "sedan": 699, "suv": 799},
    },
]


class ServiceRecord(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    price: float | None = Field(default=None, ge=0)
    prices: VehiclePrices = Field(default_factory=VehiclePrices)
    duration_min: int | None = Field(default=None, ge=0, alias="durationMin")
    vehicle_tags: List[str] = Field(default_factory=list, alias="vehicleTags")
    is_active: bool = Field(default=True, alias="isActive")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }


@dataclass
class SeedResult:
    inserted: int = 0
    updated: int = 0


def _default_db_url() -> str:
    settings = AppSettings()
    try:
        return resolve_database_url(settings)
    except ValueError:
        return DEFAULT_SQLITE_DB_URL


def parse_store_records(raw_items: Iterable[Any]) -> List[StoreCreate]:
    records: list[StoreCreate] = []
    for raw in raw_items:
        try:
            records.append(StoreCreate.model_validate(raw))
        except ValidationError as exc:
            raise ValueError(f"Invalid store record {raw!r}: {exc}") from exc
    return records


def parse_service_records(raw_items: Iterable[Any]) -> List[ServiceRecord]:
    records: list[ServiceRecord] = []
    for raw in raw_items:
        try:
            records.append(ServiceRecord.model_validate(raw))
        except ValidationError as exc:
            raise ValueError(f"Invalid service record {raw!r}: {exc}") from exc
    return records


def load_fixtures(path: Path) -> tuple[List[StoreCreate], List[ServiceRecord]]:
    """Reads `{"stores": [...], "services": [...]}`; either key may be omitted."""

    if not path.exists():
        raise FileNotFoundError(f"Fixture file not found at {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Fixture file {path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Fixture file must contain a JSON object with 'stores' and/or 'services'.")

    stores = parse_store_records(payload.get("stores") or [])
    services = parse_service_records(payload.get("services") or [])
    if not stores and not services:
        raise ValueError("Fixture file did not contain any stores or services.")
    return stores, services


def load_samples() -> tuple[List[StoreCreate], List[ServiceRecord]]:
    return parse_store_records(SAMPLE_STORES), parse_service_records(SAMPLE_SERVICES)


def _prepare_engine(db_url: str):
    url = make_url(db_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        db_path = Path(url.database).expanduser()
        if not db_path.is_absolute():
            db_path = (Path.cwd() / db_path).resolve()
        db_path.parent.mkdir(parents=True, exist_ok=True)
        url = url.set(database=str(db_path))
    return create_engine(url)


def _store_values(record: StoreCreate) -> dict[str, Any]:
    values = record.model_dump(mode="json")
    values["location"] = geo_point(record.latitude, record.longitude)
    return values


def _service_values(record: ServiceRecord) -> dict[str, Any]:
    values = record.model_dump(exclude={"prices"})
    values["prices"] = record.prices.as_dict()
    return values


def upsert_stores(session: Session, records: Iterable[StoreCreate]) -> SeedResult:
    result = SeedResult()
    for record in records:
        store = session.execute(select(Store).where(Store.name == record.name)).scalars().first()
        values = _store_values(record)
        if store is None:
            session.add(Store(**values))
            result.inserted += 1
        else:
            for key, value in values.items():
                setattr(store, key, value)
            result.updated += 1
    return result


def upsert_services(session: Session, records: Iterable[ServiceRecord]) -> SeedResult:
    result = SeedResult()
    for record in records:
        service = session.execute(select(Service).where(Service.name == record.name)).scalars().first()
        values = _service_values(record)
        if service is None:
            session.add(Service(**values))
            result.inserted += 1
        else:
            for key, value in values.items():
                setattr(service, key, value)
            result.updated += 1
    return result


def seed_database(
    *,
    stores: Iterable[StoreCreate],
    services: Iterable[ServiceRecord],
    db_url: str,
) -> tuple[SeedResult, SeedResult]:
    stores = list(stores)
    services = list(services)
    if not stores and not services:
        raise ValueError("No store or service records were provided.")

    engine = _prepare_engine(db_url)
    Base.metadata.create_all(engine)

    try:
        with Session(engine) as session:
            store_result = upsert_stores(session, stores)
            service_result = upsert_services(session, services)
            session.commit()
    except SQLAlchemyError as exc:
        logger.error("Failed to seed database: %s", exc)
        raise
    finally:
        engine.dispose()

    logger.info(
        "Seeded %s (stores inserted=%d updated=%d, services inserted=%d updated=%d)",
        db_url,
        store_result.inserted,
        store_result.updated,
        service_result.inserted,
        service_result.updated,
    )
    return store_result, service_result


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed car wash stores and services (SQLite or Postgres).")
    parser.add_argument(
        "--file",
        type=Path,
        default=None,
        help="JSON fixture file with 'stores' and/or 'services' arrays. Built-in samples are used when omitted.",
    )
    parser.add_argument(
        "--db",
        type=str,
        default=None,
        help="SQLAlchemy database URL (defaults to the configured application database).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    stores, services = load_fixtures(args.file) if args.file else load_samples()
    seed_database(stores=stores, services=services, db_url=args.db or _default_db_url())


if __name__ == "__main__":
    main()
