from __future__ import annotations

import uuid
from contextvars import ContextVar, Token
from typing import Optional

_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# incoming ids longer than this are replaced with a fresh one
MAX_REQUEST_ID_LENGTH = 128


def set_request_id(request_id: Optional[str] = None) -> Token:
    value = (request_id or "").strip()
    if not value or len(value) > MAX_REQUEST_ID_LENGTH:
        value = uuid.uuid4().hex
    return _request_id.set(value)


def get_request_id() -> Optional[str]:
    return _request_id.get()


def reset_request_id(token: Token) -> None:
    _request_id.reset(token)
