from functools import lru_cache
from typing import List, Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    api_title: str = "Car Wash Booking API"
    api_version: str = "0.1.0"
    log_level: str = "INFO"

    database_backend: str = Field("sqlite", alias="DATABASE_BACKEND")
    sqlite_url: str = Field(
        default="sqlite:///./data/sqlite/carwash.db",
        validation_alias=AliasChoices("SQLITE_URL", "DATABASE_URL"),
    )
    postgres_url: str | None = Field(default=None, alias="POSTGRES_URL")
    db_auto_create: bool = True
    store_query_timeout_sec: float = 5.0

    eta_speed_km_per_min: float = 2.0
    eta_wait_minutes: int = 5
    default_timezone: str = "UTC"
    price_filter_mode: Literal["any", "all"] = "any"

    jwt_secret: str | None = None
    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = 7

    razorpay_key_id: str | None = None
    razorpay_key_secret: str | None = None
    razorpay_base_url: str = "https://api.razorpay.com/v1"
    razorpay_timeout_sec: float = 10.0
    payment_currency: str = "INR"
    public_base_url: str = "http://localhost:3000"

    cors_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    )
    frontend_origin: str | None = Field(default=None, alias="FRONTEND_ORIGIN")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def resolved_cors_origins(self) -> List[str]:
        """
        Returns the configured CORS origins plus the optional frontend origin, deduped.
        """
        normalized: list[str] = []

        def _append(origin: str | None) -> None:
            if not origin:
                return
            cleaned = origin.rstrip("/")
            if cleaned not in normalized:
                normalized.append(cleaned)

        for origin in self.cors_origins:
            _append(origin)

        _append(self.frontend_origin)
        return normalized


@lru_cache
def get_settings() -> AppSettings:
    return AppSettings()
