from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import AppSettings
from app.core.exceptions import AppError, AuthenticationError

logger = logging.getLogger("app.security")

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

AUTH_COOKIE_NAME = "auth_token"


class SecurityMisconfigured(AppError):
    status_code = 500
    error_type = "SERVER_MISCONFIGURATION"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        logger.warning("password.verify_failed")
        return False


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    email: str
    role: str


def _require_secret(settings: AppSettings) -> str:
    secret = (settings.jwt_secret or "").strip()
    if not secret:
        raise SecurityMisconfigured("Server misconfiguration: missing JWT_SECRET")
    return secret


def create_access_token(
    claims: TokenClaims,
    settings: AppSettings,
    *,
    now: datetime | None = None,
) -> str:
    issued_at = now or datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": claims.user_id,
        "email": claims.email,
        "role": claims.role,
        "iat": issued_at,
        "exp": issued_at + timedelta(days=settings.jwt_expire_days),
    }
    return jwt.encode(payload, _require_secret(settings), algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: AppSettings) -> TokenClaims:
    try:
        payload = jwt.decode(token, _require_secret(settings), algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise AuthenticationError("Invalid or expired token.") from exc

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid or expired token.")
    return TokenClaims(
        user_id=str(user_id),
        email=str(payload.get("email") or ""),
        role=str(payload.get("role") or "user"),
    )
