# backend/contractor_hub/middleware/structured_logging.py
from __future__ import annotations

import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..config import settings

log = logging.getLogger("contractor_hub.access")

# Polled by load balancers; logged at DEBUG only.
_QUIET_PATHS = frozenset({"/api/health"})


def _caller(request: Request) -> dict[str, str | None]:
    # Bearer principals are resolved inside handlers; only dev headers are visible here.
    if settings.auth_mode != "dev":
        return {"tenant_slug": None, "user_email": None}
    return {
        "tenant_slug": request.headers.get(settings.dev_header_tenant_slug),
        "user_email": request.headers.get(settings.dev_header_user_email),
    }


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """Access log: one JSON line per request with status and latency."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            path = request.url.path
            level = logging.DEBUG if path in _QUIET_PATHS and status_code < 400 else logging.INFO
            log.log(
                level,
                "%s %s -> %s",
                request.method,
                path,
                status_code,
                extra={
                    "event": "http_request",
                    "request_id": getattr(request.state, "request_id", None),
                    "method": request.method,
                    "path": path,
                    "query": request.url.query,
                    "status_code": status_code,
                    "latency_ms": round((time.perf_counter() - started) * 1000, 1),
                    **_caller(request),
                },
            )
