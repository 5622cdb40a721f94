from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.deps import get_registry
from app.api.models.envelopes import CollectionListOut, CollectionOut, Envelope
from app.core.records.registry import CollectionRegistry

router = APIRouter(prefix="/api/v1/collections", tags=["catalog"])


@router.get("", response_model=CollectionListOut)
def list_collections(registry: CollectionRegistry = Depends(get_registry)):
    return {"collections": [a.describe() for a in registry]}


@router.get("/{token}", response_model=CollectionOut, responses={404: {"model": Envelope}})
def get_collection(token: str, registry: CollectionRegistry = Depends(get_registry)):
    # ResolutionError is shaped into the 404 catalog envelope by the app's handler.
    return registry.resolve(token).describe()
