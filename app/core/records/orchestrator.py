from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

from app.core.observability.metrics import coercion_failure, record_operation

from .adapters import RecordAdapter
from .coercion import coerce
from .envelope import envelope, failure, paged_envelope
from .errors import (
    CoercionError,
    ConcurrencyConflict,
    PersistenceFailure,
    RecordNotFoundError,
    RequiredFieldError,
    ResolutionError,
)
from .models import PageSpec, Record
from .query_planner import page_spec, plan
from .registry import CollectionRegistry

log = logging.getLogger("dynacrud.orchestrator")


@dataclass
class OrchestratorResult:
    status_code: int
    body: Dict[str, Any]
    collection: Optional[str] = None
    record_id: Optional[int] = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


_ERROR_PREFIX = {
    "list": "Error retrieving data",
    "get": "Error retrieving data",
    "create": "Error creating data",
    "update": "Error updating data",
    "delete": "Error deleting data",
}


class CrudOrchestrator:
    """Request handlers for the dynamic CRUD surface.

    Each operation resolves the collection, runs its step against the
    adapter and shapes the envelope. Nothing escapes unshaped: collection
    misses become a 404 with the catalog, field problems a 400, missing ids
    a 404 and anything else a 500 carrying the underlying message.
    """

    def __init__(
        self,
        registry: CollectionRegistry,
        *,
        default_page_size: int = 10,
        max_page_size: Optional[int] = None,
    ):
        self.registry = registry
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    # ------------------------------------------------------------
    # plumbing
    # ------------------------------------------------------------
    def _run(self, operation: str, token: str, step: Callable[[RecordAdapter], OrchestratorResult]) -> OrchestratorResult:
        adapter: Optional[RecordAdapter] = None
        try:
            adapter = self.registry.resolve(token)
            result = step(adapter)
            result.collection = adapter.collection
            record_operation(adapter.collection, operation, "ok" if result.ok else str(result.status_code))
            return result
        except ResolutionError as e:
            record_operation("unresolved", operation, "404")
            return OrchestratorResult(404, failure(str(e), e.catalog_payload()))
        except RecordNotFoundError as e:
            record_operation(adapter.collection if adapter else "unresolved", operation, "404")
            return OrchestratorResult(404, failure(str(e)), collection=e.collection)
        except CoercionError as e:
            name = adapter.collection if adapter else "unresolved"
            coercion_failure(name, e.kind or "unknown")
            record_operation(name, operation, "400")
            return OrchestratorResult(400, failure(str(e)), collection=name)
        except PersistenceFailure as e:
            log.error("%s", {"event": "persistence_failure", "operation": operation, "token": token, "error": str(e)})
            record_operation(adapter.collection if adapter else "unresolved", operation, "500")
            return OrchestratorResult(500, failure(f"Database error: {e}"))
        except Exception as e:
            log.exception("%s", {"event": "operation_failed", "operation": operation, "token": token})
            record_operation(adapter.collection if adapter else "unresolved", operation, "500")
            return OrchestratorResult(500, failure(f"{_ERROR_PREFIX[operation]}: {e}"))

    def _page(self, page: Optional[int], page_size: Optional[int]) -> PageSpec:
        return page_spec(
            page,
            page_size,
            default_page_size=self.default_page_size,
            max_page_size=self.max_page_size,
        )

    def _assign(self, adapter: RecordAdapter, rec: Record, payload: Mapping[str, Any]) -> None:
        """Resolve, coerce and assign every payload entry; the primary key is never written."""
        for key, raw in payload.items():
            fd = adapter.mapper.resolve(key)
            adapter.mapper.log_mapping(key, fd)
            if fd is None or fd.primary_key or fd.is_derived or not fd.writable:
                continue
            rec[fd.name] = coerce(raw, fd, key)

    def _check_required(self, adapter: RecordAdapter, payload: Mapping[str, Any]) -> None:
        keys = list(payload.keys())
        for fd in adapter.shape.required_fields:
            if fd.primary_key or fd.is_derived:
                continue
            key = adapter.mapper.find_key(fd, keys)
            log.info(
                "%s",
                {
                    "event": "required_check",
                    "shape": adapter.model_name,
                    "field": fd.name,
                    "column": fd.column_name,
                    "found_key": key,
                    "keys": keys,
                },
            )
            if key is None:
                raise RequiredFieldError(
                    fd.name,
                    f"Property '{fd.name}' is required but not found in request. Available keys: {', '.join(keys)}",
                )
            if payload[key] is None:
                raise RequiredFieldError(fd.name, f"Property '{fd.name}' is required")

    # ------------------------------------------------------------
    # operations
    # ------------------------------------------------------------
    def list(
        self,
        token: str,
        *,
        filter: Optional[str] = None,
        sort: Optional[str] = None,
        sort_direction: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> OrchestratorResult:
        def step(adapter: RecordAdapter) -> OrchestratorResult:
            paging = None if page is None and page_size is None else self._page(page, page_size)
            qp = plan(
                adapter.collection,
                adapter.shape,
                filter=filter,
                sort=sort,
                sort_direction=sort_direction,
                page=paging,
                mapper=adapter.mapper,
            )
            rows, total = adapter.list(qp)
            data = [adapter.render(r) for r in rows]
            if paging is None:
                return OrchestratorResult(200, envelope(True, "Data retrieved successfully", data, len(data)))
            return OrchestratorResult(
                200, paged_envelope("Data retrieved successfully", data, total_count=total, page=paging)
            )

        return self._run("list", token, step)

    def paginated(
        self,
        token: str,
        *,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        filter: Optional[str] = None,
        sort: Optional[str] = None,
        sort_direction: Optional[str] = None,
    ) -> OrchestratorResult:
        def step(adapter: RecordAdapter) -> OrchestratorResult:
            paging = self._page(page, page_size)
            qp = plan(
                adapter.collection,
                adapter.shape,
                filter=filter,
                sort=sort,
                sort_direction=sort_direction,
                page=paging,
                mapper=adapter.mapper,
            )
            rows, total = adapter.list(qp)
            data = [adapter.render(r) for r in rows]
            return OrchestratorResult(
                200, paged_envelope("Data retrieved successfully", data, total_count=total, page=paging)
            )

        return self._run("list", token, step)

    def get(self, token: str, record_id: int) -> OrchestratorResult:
        def step(adapter: RecordAdapter) -> OrchestratorResult:
            log.info("%s", {"event": "get", "collection": adapter.collection, "id": record_id})
            row = adapter.get(record_id)
            if row is None:
                raise RecordNotFoundError(adapter.collection, record_id)
            return OrchestratorResult(
                200, envelope(True, "Data retrieved successfully", adapter.render(row), 1), record_id=record_id
            )

        return self._run("get", token, step)

    def create(self, token: str, payload: Optional[Mapping[str, Any]]) -> OrchestratorResult:
        def step(adapter: RecordAdapter) -> OrchestratorResult:
            if payload is None:
                return OrchestratorResult(400, failure("Request body cannot be null"))
            self._check_required(adapter, payload)
            rec = adapter.new_record()
            self._assign(adapter, rec, payload)
            row = adapter.create(rec)
            return OrchestratorResult(
                201, envelope(True, "Data created successfully", adapter.render(row), 1), record_id=row.id
            )

        return self._run("create", token, step)

    def update(self, token: str, record_id: int, payload: Optional[Mapping[str, Any]]) -> OrchestratorResult:
        def step(adapter: RecordAdapter) -> OrchestratorResult:
            current = adapter.get(record_id)
            if current is None:
                raise RecordNotFoundError(adapter.collection, record_id)
            if payload is None:
                return OrchestratorResult(400, failure("Request body cannot be null"))
            rec = dict(current.values)
            self._assign(adapter, rec, payload)
            try:
                row = adapter.update(record_id, rec, version=current.version)
            except ConcurrencyConflict:
                if not adapter.exists(record_id):
                    raise RecordNotFoundError(adapter.collection, record_id)
                raise
            return OrchestratorResult(
                200, envelope(True, "Data updated successfully", adapter.render(row), 1), record_id=record_id
            )

        return self._run("update", token, step)

    def delete(self, token: str, record_id: int) -> OrchestratorResult:
        def step(adapter: RecordAdapter) -> OrchestratorResult:
            current = adapter.get(record_id)
            if current is None:
                raise RecordNotFoundError(adapter.collection, record_id)
            try:
                adapter.delete(record_id, version=current.version)
            except ConcurrencyConflict:
                if not adapter.exists(record_id):
                    raise RecordNotFoundError(adapter.collection, record_id)
                raise
            return OrchestratorResult(200, envelope(True, "Data deleted successfully", {}, 0), record_id=record_id)

        return self._run("delete", token, step)
