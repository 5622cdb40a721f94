from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse

from app.api.deps import get_registry, get_settings_dep
from app.core.observability.metrics import inc_named
from app.core.records.registry import CollectionRegistry
from app.core.settings import Settings

router = APIRouter(tags=["health"])


def _data_dir_problems(settings: Settings) -> List[str]:
    probe = settings.data_dir / f".ready-{uuid.uuid4().hex}.tmp"
    try:
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        probe.write_text("ok", encoding="utf-8")
        probe.unlink()
    except OSError as e:
        return [f"data_dir_not_writable:{settings.data_dir} err={type(e).__name__}"]
    return []


@router.get("/health")
def health_check():
    return {"status": "healthy"}


@router.get("/health/live")
def live():
    inc_named("health_live")
    return {"status": "alive"}


@router.get("/health/ready")
def ready(
    settings: Settings = Depends(get_settings_dep),
    registry: CollectionRegistry = Depends(get_registry),
):
    """Ready once the registry holds collections and, for the json store, the data directory is writable."""
    inc_named("health_ready")
    problems: List[str] = []
    if not registry.collection_names():
        problems.append("registry_empty")
    if settings.store == "json":
        problems.extend(_data_dir_problems(settings))

    if problems:
        return JSONResponse(status_code=503, content={"status": "not_ready", "problems": problems})
    return {"status": "ready", "store": settings.store}
