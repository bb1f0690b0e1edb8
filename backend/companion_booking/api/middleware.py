"""
Request middleware: request id, actor binding and access log.

Each request gets an id (an incoming X-Request-ID is honoured once
sanitized) and the acting party from X-Actor-Id, both bound to structlog
contextvars so booking service events carry them. The access line is
logged at a level that follows the response: 5xx as error, 4xx as warning.
"""

import re
import time
import uuid
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
import structlog

from companion_booking.core.logging import get_logger

logger = get_logger(__name__)

MAX_REQUEST_ID_LENGTH = 64
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")


def resolve_request_id(incoming: Optional[str]) -> str:
    """Use the caller's id when it is short and log-safe, else mint one."""
    if incoming:
        candidate = incoming.strip()[:MAX_REQUEST_ID_LENGTH]
        if candidate and _REQUEST_ID_PATTERN.match(candidate):
            return candidate
    return uuid.uuid4().hex[:12]


def log_method_for(status_code: int):
    if status_code >= 500:
        return logger.error
    if status_code >= 400:
        return logger.warning
    return logger.info


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = resolve_request_id(request.headers.get("X-Request-ID"))
        start_time = time.perf_counter()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            actor_id=request.headers.get("X-Actor-Id"),
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                error=str(e),
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            raise

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        log_method_for(response.status_code)(
            "request_completed",
            status_code=response.status_code,
            duration_ms=duration_ms,
        )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        return response
