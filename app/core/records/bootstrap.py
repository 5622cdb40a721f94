from __future__ import annotations

from app.core.settings import Settings

from .orchestrator import CrudOrchestrator
from .registry import CollectionRegistry
from .schema_loader import all_declarations
from .store import RecordStore, build_store


def build_registry(settings: Settings, *, store: RecordStore | None = None) -> CollectionRegistry:
    """Assemble the collection registry once, at startup."""
    if store is None:
        store = build_store(settings.store, data_dir=settings.data_dir)
    return CollectionRegistry.build(all_declarations(settings.schema_file), store)


def build_orchestrator(settings: Settings, *, registry: CollectionRegistry | None = None) -> CrudOrchestrator:
    return CrudOrchestrator(
        registry or build_registry(settings),
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )
