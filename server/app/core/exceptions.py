from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.core.context import get_request_id

logger = logging.getLogger("app.errors")


class AppError(Exception):
    status_code: int = 500
    error_type: str = "APP_ERROR"

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(AppError):
    status_code = 400
    error_type = "VALIDATION_ERROR"


class AuthenticationError(AppError):
    status_code = 401
    error_type = "AUTHENTICATION_ERROR"


class PermissionDeniedError(AppError):
    status_code = 403
    error_type = "PERMISSION_DENIED"


class NotFoundError(AppError):
    status_code = 404
    error_type = "NOT_FOUND"


class ConflictError(AppError):
    status_code = 409
    error_type = "CONFLICT"


class UpstreamError(AppError):
    """Data store or third-party gateway failure. The cause is logged, never returned."""

    status_code = 500
    error_type = "UPSTREAM_ERROR"


def _error_payload(message: str, error_type: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "success": False,
        "error": message,
        "errorType": error_type,
    }
    if details:
        payload["details"] = details
    trace_id = get_request_id()
    if trace_id:
        payload["traceId"] = trace_id
    return payload


def _describe_validation_problem(problem: dict[str, Any]) -> str:
    location = ".".join(str(part) for part in problem.get("loc", ()) if part not in ("body", "query", "path"))
    message = problem.get("msg", "Invalid value.")
    return f"{location}: {message}" if location else message


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        if exc.__cause__ is not None and exc.status_code >= 500:
            logger.error(
                "request.failed",
                exc_info=(type(exc.__cause__), exc.__cause__, exc.__cause__.__traceback__),
                extra={"path": request.url.path, "error_type": exc.error_type},
            )
        payload = _error_payload(exc.message, exc.error_type, exc.details)
        return JSONResponse(status_code=exc.status_code, content=payload)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        problems = exc.errors()
        message = _describe_validation_problem(problems[0]) if problems else "Invalid request."
        details = {"errors": jsonable_encoder(problems, exclude={"ctx", "url"})}
        payload = _error_payload(message, ValidationError.error_type, details)
        return JSONResponse(status_code=ValidationError.status_code, content=payload)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("request.unhandled", extra={"path": request.url.path})
        payload = _error_payload("Internal server error.", "INTERNAL_ERROR")
        return JSONResponse(status_code=500, content=payload)
