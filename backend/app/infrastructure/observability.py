"""Structured Logging — JSON formatter, setup, and per-request access logging.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (error_code, path, status_code, storage_key, ...) surfaced when present
    - JSON format in production, human-readable in development
    - setup_logging installs at most one handler, however often it is called
"""

import logging
import json
import time
from datetime import datetime, timezone

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

_EXTRA_KEYS = (
    "error_code", "path", "method", "status_code", "duration_ms",
    "attempt", "storage_key", "auth_event",
)

access_logger = logging.getLogger("app.access")


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_KEYS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


class _StarterHandler(logging.StreamHandler):
    """Marker type so repeated setup_logging calls replace instead of stack."""


def setup_logging(level: str = "INFO", fmt: str = "json"):
    """Configure logging for the application."""
    for existing in list(logging.root.handlers):
        if isinstance(existing, _StarterHandler):
            logging.root.removeHandler(existing)
    handler = _StarterHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s - %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One access-log line per request: method, path, status, duration."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        access_logger.info(
            f"{request.method} {request.url.path} {response.status_code}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response
