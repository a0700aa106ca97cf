from __future__ import annotations

from typing import Any, Callable, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from app.core.config import AppSettings
from app.core.security import TokenClaims, create_access_token
from app.db.base import Base
from app.db.models import Booking, Store, geo_point
from app.db.session import Database
from app.main import create_app

ORIGIN = (40.7128, -74.0060)


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        _env_file=None,
        jwt_secret="test-secret",
        razorpay_key_id="rzp_test_key",
        razorpay_key_secret="rzp_test_secret",
        razorpay_base_url="https://razorpay.test/v1",
        public_base_url="https://carwash.test",
        store_query_timeout_sec=5.0,
    )


@pytest.fixture
def engine() -> Iterator[Engine]:
    # one shared connection: the search pipeline queries from a worker thread
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine: Engine) -> Iterator[Session]:
    with Session(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def client(settings: AppSettings, engine: Engine) -> Iterator[TestClient]:
    app = create_app(settings=settings, database=Database(engine))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_store(session: Session) -> Callable[..., Store]:
    def _make(**overrides: Any) -> Store:
        latitude = overrides.pop("latitude", ORIGIN[0])
        longitude = overrides.pop("longitude", ORIGIN[1])
        values: dict[str, Any] = {
            "name": "Downtown Wash Center",
            "address": "123 Main Street",
            "city": "New York",
            "location": geo_point(latitude, longitude),
            "services": [
                {"name": "Basic Wash", "price": 19.99, "duration": 15},
                {"name": "Premium Wash", "price": 29.99, "duration": 30},
            ],
            "hours": {
                day: {"open": "08:00", "close": "18:00"}
                for day in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
            },
            "rating": 4.5,
            "capacity": 10,
            "current_queue": 2,
        }
        values.update(overrides)
        store = Store(**values)
        session.add(store)
        session.commit()
        return store

    return _make


@pytest.fixture
def make_booking(session: Session) -> Callable[..., Booking]:
    def _make(**overrides: Any) -> Booking:
        values: dict[str, Any] = {
            "name": "Asha Rao",
            "phone": "9876543210",
            "email": "asha@example.com",
            "brand": "Honda",
            "model": "City",
            "vehicle_type": "sedan",
            "service": "Sedan Premium Wash",
            "date": "2026-10-20",
            "time": "10:30",
        }
        values.update(overrides)
        booking = Booking(**values)
        session.add(booking)
        session.commit()
        return booking

    return _make


@pytest.fixture
def auth_headers(settings: AppSettings) -> Callable[..., dict[str, str]]:
    def _headers(user_id: str = "user-1", email: str = "asha@example.com", role: str = "user") -> dict[str, str]:
        token = create_access_token(TokenClaims(user_id=user_id, email=email, role=role), settings)
        return {"Authorization": f"Bearer {token}"}

    return _headers
