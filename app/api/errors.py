from __future__ import annotations

from typing import Any, Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.records.envelope import failure
from app.core.records.errors import ResolutionError


def _validation_message(errors: List[Dict[str, Any]]) -> str:
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body") or "request"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "Invalid request: " + "; ".join(parts)


def install_exception_handlers(app: FastAPI) -> None:
    """Shape framework-level errors as envelopes too."""

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(_request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=failure(_validation_message(exc.errors())))

    @app.exception_handler(StarletteHTTPException)
    async def _http_error_handler(_request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return JSONResponse(status_code=exc.status_code, content=failure(message), headers=getattr(exc, "headers", None))

    @app.exception_handler(ResolutionError)
    async def _resolution_error_handler(_request: Request, exc: ResolutionError):
        return JSONResponse(status_code=404, content=failure(str(exc), exc.catalog_payload()))
