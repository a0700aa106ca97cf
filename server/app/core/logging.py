from __future__ import annotations

import logging
import logging.config
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from app.core.context import get_request_id

LOG_FIELDS = "%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s"

# third-party loggers that are far too chatty at INFO
QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "httpcore", "passlib")


class RequestIdFilter(logging.Filter):
    """Stamps every record with the id of the request being served, or "-"."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True


def _logger(level: str) -> Dict[str, Any]:
    return {"handlers": ["stdout"], "level": level, "propagate": False}


def build_logging_config(level: str) -> Dict[str, Any]:
    loggers = {name: _logger(level) for name in ("app", "uvicorn", "uvicorn.error", "uvicorn.access")}
    loggers.update({name: _logger("WARNING") for name in QUIET_LOGGERS})
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"request_id": {"()": RequestIdFilter}},
        "formatters": {
            "json": {
                "()": jsonlogger.JsonFormatter,
                "fmt": LOG_FIELDS,
                "datefmt": "%Y-%m-%dT%H:%M:%S%z",
                "rename_fields": {"levelname": "level", "name": "logger"},
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
                "formatter": "json",
                "filters": ["request_id"],
            }
        },
        "loggers": loggers,
        "root": {"handlers": ["stdout"], "level": level},
    }


def configure_logging(level: str = "INFO") -> None:
    logging.config.dictConfig(build_logging_config(level.upper()))
