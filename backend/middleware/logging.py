"""Per-request access log for development.

One line per API call, written after the response is ready::

    [1a2b3c4d] POST /api/analyze 58B -> 200 in 2.412s

The short id is also returned in ``X-Request-ID`` so a client-side error can
be matched to the server log. Bodies (photos) are never read. Health checks,
docs and ``/storage`` files are skipped.

Only enabled in DEV mode (see ``create_app``).
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

REQUEST_LOGGER_NAME = "api.requests"
REQUEST_ID_HEADER = "X-Request-ID"

logger = logging.getLogger(REQUEST_LOGGER_NAME)

SKIPPED_PATHS = frozenset({"/", "/health", "/docs", "/redoc", "/openapi.json", "/favicon.ico"})
SKIPPED_PREFIXES = ("/storage/",)


def _should_log(path: str) -> bool:
    return path not in SKIPPED_PATHS and not path.startswith(SKIPPED_PREFIXES)


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not _should_log(request.url.path):
            return await call_next(request)

        request_id = uuid.uuid4().hex[:8]
        size = request.headers.get("content-length", "0")
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "[%s] %s %s %sB -> unhandled error in %.3fs",
                request_id,
                request.method,
                request.url.path,
                size,
                time.perf_counter() - started,
            )
            raise

        logger.log(
            _level_for(response.status_code),
            "[%s] %s %s %sB -> %d in %.3fs",
            request_id,
            request.method,
            request.url.path,
            size,
            response.status_code,
            time.perf_counter() - started,
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def configure_request_logging(log_level: str = "INFO") -> None:
    """Give the access log its own handler; idempotent across app instances."""
    request_logger = logging.getLogger(REQUEST_LOGGER_NAME)
    request_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    request_logger.propagate = False

    if not request_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
        request_logger.addHandler(handler)
