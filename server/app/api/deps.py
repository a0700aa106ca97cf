from __future__ import annotations

from fastapi import Depends, Request

from app.core.config import AppSettings, get_settings
from app.core.exceptions import AuthenticationError, PermissionDeniedError
from app.core.security import AUTH_COOKIE_NAME, TokenClaims, decode_access_token


def _extract_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(AUTH_COOKIE_NAME) or None


def get_current_user(
    request: Request,
    settings: AppSettings = Depends(get_settings),
) -> TokenClaims:
    """Claims of the caller, from a Bearer header or the auth cookie."""

    token = _extract_token(request)
    if not token:
        raise AuthenticationError("Unauthorized")
    return decode_access_token(token, settings)


def require_admin(user: TokenClaims = Depends(get_current_user)) -> TokenClaims:
    if user.role != "admin":
        raise PermissionDeniedError("Admin access required")
    return user
