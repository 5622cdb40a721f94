from .errors import (
    CoercionError,
    ConcurrencyConflict,
    PersistenceFailure,
    RecordNotFoundError,
    ResolutionError,
)
from .models import FieldDescriptor, FieldKind, RecordShape
from .orchestrator import CrudOrchestrator, OrchestratorResult
from .registry import CollectionRegistry

__all__ = [
    "CoercionError",
    "CollectionRegistry",
    "ConcurrencyConflict",
    "CrudOrchestrator",
    "FieldDescriptor",
    "FieldKind",
    "OrchestratorResult",
    "PersistenceFailure",
    "RecordNotFoundError",
    "RecordShape",
    "ResolutionError",
]
