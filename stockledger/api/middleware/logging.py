"""
Request logging.

Each request gets an id (the caller's ``X-Request-ID`` when present) bound
into structlog's context vars, so engine, projector and store events logged
while serving it carry the same ``request_id`` as the access lines here.
"""

import time
import uuid
from collections.abc import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from stockledger.config import get_logger

logger = get_logger(__name__)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        route = {"method": request.method, "path": request.url.path}

        started = time.perf_counter()
        with structlog.contextvars.bound_contextvars(request_id=request_id):
            logger.info(
                "request_started",
                client=request.client.host if request.client else "unknown",
                **route,
            )
            try:
                response = await call_next(request)
            except Exception as e:
                logger.error("request_failed", error=str(e), duration_ms=_elapsed_ms(started), **route)
                raise

            duration_ms = _elapsed_ms(started)
            logger.info(
                "request_completed", status=response.status_code, duration_ms=duration_ms, **route
            )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        return response
