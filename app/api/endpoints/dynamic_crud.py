from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.api.deps import get_orchestrator
from app.api.models.envelopes import Envelope, PaginatedEnvelope
from app.core.records.orchestrator import CrudOrchestrator, OrchestratorResult

# Mounted twice by app.api.main:
#   /api/v1/dynamic   (authoritative)
#   /api/DynamicCRUD  (deprecated alias)
router = APIRouter(tags=["dynamic_crud"])

_ERRORS = {400: {"model": Envelope}, 404: {"model": Envelope}, 500: {"model": Envelope}}


def _respond(result: OrchestratorResult, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    merged = dict(result.headers)
    merged.update(headers or {})
    return JSONResponse(
        status_code=result.status_code,
        content=jsonable_encoder(result.body),
        headers=merged or None,
    )


@router.get("/{collection}", response_model=PaginatedEnvelope, responses=_ERRORS)
def list_records(
    collection: str,
    filter: Optional[str] = Query(default=None),
    sort: Optional[str] = Query(default=None),
    sort_direction: Optional[str] = Query(default="asc", alias="sortDirection"),
    page: Optional[int] = Query(default=None),
    page_size: Optional[int] = Query(default=None, alias="pageSize"),
    orchestrator: CrudOrchestrator = Depends(get_orchestrator),
):
    return _respond(
        orchestrator.list(
            collection,
            filter=filter,
            sort=sort,
            sort_direction=sort_direction,
            page=page,
            page_size=page_size,
        )
    )


@router.get("/{collection}/paginated", response_model=PaginatedEnvelope, responses=_ERRORS)
def list_records_paginated(
    collection: str,
    page: Optional[int] = Query(default=1),
    page_size: Optional[int] = Query(default=10, alias="pageSize"),
    filter: Optional[str] = Query(default=None),
    sort: Optional[str] = Query(default=None),
    sort_direction: Optional[str] = Query(default="asc", alias="sortDirection"),
    orchestrator: CrudOrchestrator = Depends(get_orchestrator),
):
    return _respond(
        orchestrator.paginated(
            collection,
            page=page,
            page_size=page_size,
            filter=filter,
            sort=sort,
            sort_direction=sort_direction,
        )
    )


@router.get("/{collection}/{record_id}", response_model=Envelope, responses=_ERRORS)
def get_record(
    collection: str,
    record_id: int,
    orchestrator: CrudOrchestrator = Depends(get_orchestrator),
):
    return _respond(orchestrator.get(collection, record_id))


@router.post("/{collection}", status_code=201, response_model=Envelope, responses=_ERRORS)
def create_record(
    collection: str,
    request: Request,
    payload: Optional[Dict[str, Any]] = Body(default=None),
    orchestrator: CrudOrchestrator = Depends(get_orchestrator),
):
    result = orchestrator.create(collection, payload)
    headers = None
    if result.status_code == 201 and result.record_id is not None:
        headers = {"Location": f"{request.url.path.rstrip('/')}/{result.record_id}"}
    return _respond(result, headers)


@router.put("/{collection}/{record_id}", response_model=Envelope, responses=_ERRORS)
def update_record(
    collection: str,
    record_id: int,
    payload: Optional[Dict[str, Any]] = Body(default=None),
    orchestrator: CrudOrchestrator = Depends(get_orchestrator),
):
    return _respond(orchestrator.update(collection, record_id, payload))


@router.delete("/{collection}/{record_id}", response_model=Envelope, responses=_ERRORS)
def delete_record(
    collection: str,
    record_id: int,
    orchestrator: CrudOrchestrator = Depends(get_orchestrator),
):
    return _respond(orchestrator.delete(collection, record_id))
