from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from .adapters import RecordAdapter
from .errors import ResolutionError
from .models import RecordShape
from .store import RecordStore

log = logging.getLogger("dynacrud.registry")


class CollectionRegistry:
    """Process-wide table of collection name -> adapter.

    Assembled once at startup; lookups never mutate it.

    Resolution order (case-insensitive):
      1) exact collection name
      2) token + "s" equals a collection name
      3) token equals the record type name
    """

    def __init__(self, adapters: Iterable[RecordAdapter]):
        self._adapters: Dict[str, RecordAdapter] = {}
        for a in adapters:
            key = a.collection.casefold()
            if key in self._adapters:
                raise ValueError(f"collection registered twice: {a.collection}")
            self._adapters[key] = a

    @classmethod
    def build(cls, declarations: Iterable[Tuple[str, RecordShape]], store: RecordStore) -> "CollectionRegistry":
        adapters = [RecordAdapter(name, shape, store) for name, shape in declarations]
        reg = cls(adapters)
        log.info(
            "%s",
            {"event": "registry_built", "store": store.name, "collections": reg.collection_names()},
        )
        return reg

    def __len__(self) -> int:
        return len(self._adapters)

    def __iter__(self):
        return iter(self._adapters.values())

    def collection_names(self) -> List[str]:
        return [a.collection for a in self._adapters.values()]

    def catalog(self) -> List[Tuple[str, str]]:
        return [(a.collection, a.model_name) for a in self._adapters.values()]

    def find(self, token: str) -> Optional[RecordAdapter]:
        t = (token or "").strip().casefold()
        if not t:
            return None

        hit = self._adapters.get(t)
        if hit is not None:
            return hit

        hit = self._adapters.get(t + "s")
        if hit is not None:
            return hit

        for a in self._adapters.values():
            if a.model_name.casefold() == t:
                return a
        return None

    def resolve(self, token: str) -> RecordAdapter:
        a = self.find(token)
        if a is None:
            raise ResolutionError(token, self.catalog())
        return a
