from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple


class RecordEngineError(Exception):
    """Base class for every failure raised by the record engine."""


class ResolutionError(RecordEngineError):
    """Unknown collection token. Carries the full catalog for guidance."""

    def __init__(self, token: str, catalog: List[Tuple[str, str]]):
        self.token = token
        self.catalog = list(catalog)
        listing = "\n".join(f"{name} (Model: {model})" for name, model in self.catalog)
        super().__init__(f"Collection '{token}' not found. Available collections:\n{listing}")

    def catalog_payload(self) -> Dict[str, Any]:
        return {"available": [{"collection": name, "model": model} for name, model in self.catalog]}


class FieldResolutionMiss(RecordEngineError):
    def __init__(self, shape_name: str, key: str):
        self.shape_name = shape_name
        self.key = key
        super().__init__(f"{shape_name} has no field matching '{key}'")


class CoercionError(RecordEngineError):
    """An input value is incompatible with the declared type of a field."""

    def __init__(self, field: str, reason: str, *, kind: Optional[str] = None):
        self.field = field
        self.reason = reason
        self.kind = kind
        super().__init__(f"Invalid value for property '{field}': {reason}")


class RequiredFieldError(CoercionError):
    def __init__(self, field: str, reason: str):
        super().__init__(field, reason, kind="required")

    def __str__(self) -> str:
        return self.reason


class RecordNotFoundError(RecordEngineError):
    def __init__(self, collection: str, record_id: Any):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"Data with id {record_id} not found")


class ConcurrencyConflict(RecordEngineError):
    def __init__(self, collection: str, record_id: Any, expected_version: Optional[int] = None):
        self.collection = collection
        self.record_id = record_id
        self.expected_version = expected_version
        super().__init__(
            f"Record {record_id} in {collection} was modified or removed concurrently "
            f"(expected version {expected_version})"
        )


class PersistenceFailure(RecordEngineError):
    """Any unexpected storage-layer failure."""
