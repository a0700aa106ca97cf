from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Generator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import AppSettings, get_settings
from app.db.base import Base

logger = logging.getLogger("app.db")


def resolve_database_url(settings: AppSettings) -> str:
    backend = (settings.database_backend or "sqlite").strip().lower()
    if backend == "postgres":
        db_url = (settings.postgres_url or "").strip()
        if not db_url:
            raise ValueError("POSTGRES_URL must be configured when DATABASE_BACKEND=postgres.")
    elif backend == "sqlite":
        db_url = (settings.sqlite_url or "").strip()
        if not db_url:
            raise ValueError("SQLITE_URL / DATABASE_URL must be configured when DATABASE_BACKEND=sqlite.")
    else:
        raise ValueError(f"Unsupported DATABASE_BACKEND: {settings.database_backend}")
    return db_url


class Database:
    """Owns the engine and session factory for one application instance."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._session_factory = sessionmaker(
            bind=engine, autoflush=False, autocommit=False, expire_on_commit=False
        )

    @classmethod
    def from_settings(cls, settings: AppSettings | None = None) -> "Database":
        settings = settings or get_settings()
        db_url = resolve_database_url(settings)
        kwargs: dict[str, Any] = {}
        if db_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
        return cls(create_engine(db_url, **kwargs))

    def create_all(self) -> None:
        Base.metadata.create_all(self.engine)

    def session(self) -> Session:
        return self._session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        session = self.session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        logger.info("database.dispose")
        self.engine.dispose()


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_session(request: Request) -> Generator[Session, None, None]:
    database = get_database(request)
    with database.session() as session:
        yield session
