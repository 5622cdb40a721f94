from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar
from typing import Callable, Dict, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.api.observability.metrics import normalize_path, observe_request

log = logging.getLogger("dynacrud.request")

REQUEST_ID_HEADER = "X-Request-Id"

_current_request_id: ContextVar[Optional[str]] = ContextVar("dynacrud_request_id", default=None)


class RequestIdLogFilter(logging.Filter):
    """Stamps ``record.request_id`` so formatters can print it."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _current_request_id.get() or "-"
        return True


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Request id, Prometheus observation and one access line per API call.

    The id comes from the inbound X-Request-Id header when present and is
    echoed on the response; it is also visible to every dynacrud logger
    for the lifetime of the request through RequestIdLogFilter.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = rid
        token = _current_request_id.set(rid)
        try:
            started = time.perf_counter()
            resp = await call_next(request)
            elapsed = time.perf_counter() - started
        finally:
            _current_request_id.reset(token)

        resp.headers[REQUEST_ID_HEADER] = rid
        observe_request(request.method, request.url.path, resp.status_code, elapsed)

        if request.url.path.startswith("/api/"):
            # Payload values are never logged here.
            log.info(
                "%s",
                {
                    "event": "request",
                    "request_id": rid,
                    "method": request.method,
                    "route": normalize_path(request.url.path),
                    "path": request.url.path,
                    "status_code": resp.status_code,
                    "duration_ms": int(elapsed * 1000),
                },
            )
        return resp


SECURITY_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-origin",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds SECURITY_HEADERS to every response when enabled (prod default)."""

    def __init__(self, app, enabled: bool = True):
        super().__init__(app)
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        resp = await call_next(request)
        if self.enabled:
            for name, value in SECURITY_HEADERS.items():
                resp.headers.setdefault(name, value)
        return resp
