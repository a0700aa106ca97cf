from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import admin, auth, bookings, contact, payments, reviews, services, stores, users
from app.core.config import AppSettings, get_settings
from app.core.exceptions import register_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import RequestContextMiddleware
from app.db.session import Database


def create_app(settings: AppSettings | None = None, database: Database | None = None) -> FastAPI:
    """
    Application factory for the car wash booking backend.
    The database is opened in the lifespan hook unless one is passed in.
    """

    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        db = database or Database.from_settings(settings)
        if settings.db_auto_create:
            db.create_all()
        app.state.database = db
        try:
            yield
        finally:
            if database is None:
                db.dispose()

    app = FastAPI(
        title=settings.api_title,
        description="Store search, bookings and payments for the car wash booking site.",
        version=settings.api_version,
        lifespan=lifespan,
    )

    cors_origins = settings.resolved_cors_origins
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.dependency_overrides[get_settings] = lambda: settings

    register_exception_handlers(app)
    app.add_middleware(RequestContextMiddleware)

    app.include_router(stores.router)
    app.include_router(services.router)
    app.include_router(bookings.router)
    app.include_router(admin.router)
    app.include_router(payments.router)
    app.include_router(reviews.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(contact.router)

    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
