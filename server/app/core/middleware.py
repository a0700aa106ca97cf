from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.context import get_request_id, reset_request_id, set_request_id

logger = logging.getLogger("app.request")

REQUEST_ID_HEADER = "X-Request-ID"

# load balancer probes
UNLOGGED_PATHS = frozenset({"/health"})


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds a request id for the call, echoes it back and writes one access line."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        token = set_request_id(request.headers.get(REQUEST_ID_HEADER))
        request_id = get_request_id() or ""
        started = time.perf_counter()
        extra = {"path": request.url.path, "method": request.method}

        try:
            response = await call_next(request)
        except Exception:
            extra["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
            logger.error("request.crashed", extra=extra)
            raise
        else:
            extra["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
            extra["status_code"] = response.status_code
            if request.url.path not in UNLOGGED_PATHS:
                level = logging.WARNING if response.status_code >= 500 else logging.INFO
                logger.log(level, "request.completed", extra=extra)
        finally:
            reset_request_id(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
