from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from app.api.errors import install_exception_handlers
from app.api.versioning import DYNAMIC_PREFIX, LEGACY_DYNAMIC_PREFIX, is_legacy_path

from app.api.endpoints import catalog, dynamic_crud, financial_reports, health
from app.api.endpoints import metrics_export

from app.api.middleware.error_shaping import SafeErrorMiddleware
from app.api.middleware.request_context import (
    RequestContextMiddleware,
    RequestIdLogFilter,
    SecurityHeadersMiddleware,
)

from app.core.records.bootstrap import build_orchestrator
from app.core.records.registry import CollectionRegistry
from app.core.settings import Settings, get_settings


_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s rid=%(request_id)s %(message)s"


def _configure_logging(level: str) -> None:
    root = logging.getLogger("dynacrud")
    root.setLevel(level)
    if any(isinstance(f, RequestIdLogFilter) for h in root.handlers for f in h.filters):
        return
    handler = logging.StreamHandler()
    handler.addFilter(RequestIdLogFilter())
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    root.addHandler(handler)


def create_app(settings: Optional[Settings] = None, *, registry: Optional[CollectionRegistry] = None) -> FastAPI:
    settings = settings or get_settings()
    _configure_logging(settings.log_level)

    app = FastAPI(
        title="Dynamic CRUD API",
        version="0.1.0",
    )

    # Registry + orchestrator are assembled once per process and read-only afterwards.
    app.state.settings = settings
    app.state.orchestrator = build_orchestrator(settings, registry=registry)

    install_exception_handlers(app)

    # ------------------------------------------------------------
    # Middleware stack (ORDER MATTERS)
    # Starlette reverses add_middleware order: the LAST call is the OUTERMOST wrapper.
    # Runtime order (outermost → innermost):
    #   legacy deprecation headers → SafeErrorMiddleware → CORSMiddleware
    #   → SecurityHeaders → RequestContext → handler
    # ------------------------------------------------------------
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, enabled=settings.security_headers_enabled)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SafeErrorMiddleware)

    @app.middleware("http")
    async def add_deprecation_headers_for_legacy(request: Request, call_next):
        resp: Response = await call_next(request)
        if is_legacy_path(request.url.path):
            resp.headers.setdefault("Deprecation", "true")
            resp.headers.setdefault("Link", f'<{DYNAMIC_PREFIX}>; rel="latest-version"')
        return resp

    app.include_router(health.router)
    app.include_router(metrics_export.router)
    app.include_router(catalog.router)
    app.include_router(financial_reports.router)

    # Dynamic surface plus the deprecated /api/DynamicCRUD alias
    app.include_router(dynamic_crud.router, prefix=DYNAMIC_PREFIX)
    app.include_router(dynamic_crud.router, prefix=LEGACY_DYNAMIC_PREFIX, include_in_schema=False)

    return app


app = create_app()
