from __future__ import annotations

import logging
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from app.core.records.envelope import failure

log = logging.getLogger("dynacrud.errors")


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """
    Last line of defence for anything the handlers did not shape.

    The client gets the standard failure envelope with the request id and
    nothing else; the traceback goes to the server log only.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            rid = getattr(request.state, "request_id", None) or request.headers.get("x-request-id")
            log.exception(
                "%s",
                {
                    "event": "unhandled_error",
                    "request_id": rid,
                    "method": request.method,
                    "path": request.url.path,
                    "error_type": type(e).__name__,
                },
            )
            body = failure("Internal Server Error")
            if rid:
                body["request_id"] = rid
            return JSONResponse(status_code=500, content=body)
