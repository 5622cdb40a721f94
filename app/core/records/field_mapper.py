from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from .errors import FieldResolutionMiss
from .models import FieldDescriptor, RecordShape

log = logging.getLogger("dynacrud.mapping")


def candidate_keys(external_key: str) -> List[str]:
    """Spellings tried, in order, when matching an external key.

    1) the key as given
    2) the key with underscores removed
    3) the key with spaces removed
    """
    out: List[str] = []
    for c in (external_key, external_key.replace("_", ""), external_key.replace(" ", "")):
        c = c.casefold()
        if c and c not in out:
            out.append(c)
    return out


def _field_spellings(fd: FieldDescriptor) -> List[str]:
    names = [fd.name, fd.name.replace("_", "")]
    if fd.column:
        names += [fd.column, fd.column.replace("_", "")]
    return [n.casefold() for n in names]


class FieldMapper:
    """Resolves external field names against one record shape.

    Matching is case-insensitive on both sides; an internal name or column
    alias also matches with its underscores removed, so ``reportDate``,
    ``report_date`` and ``Report Date`` all land on ``report_date``.
    """

    def __init__(self, shape: RecordShape):
        self.shape = shape
        self._index: Dict[str, FieldDescriptor] = {}
        # Exact spellings are indexed first so they win over stripped ones.
        for fd in shape.fields:
            self._index.setdefault(fd.name.casefold(), fd)
            if fd.column:
                self._index.setdefault(fd.column.casefold(), fd)
        for fd in shape.fields:
            for s in _field_spellings(fd):
                self._index.setdefault(s, fd)

    def resolve(self, external_key: str) -> Optional[FieldDescriptor]:
        for c in candidate_keys(external_key):
            fd = self._index.get(c)
            if fd is not None:
                return fd
        return None

    def require(self, external_key: str) -> FieldDescriptor:
        fd = self.resolve(external_key)
        if fd is None:
            raise FieldResolutionMiss(self.shape.name, external_key)
        return fd

    def find_key(self, fd: FieldDescriptor, keys: Iterable[str]) -> Optional[str]:
        """First key in ``keys`` that resolves to ``fd``."""
        for k in keys:
            if self.resolve(k) is fd:
                return k
        return None

    def log_mapping(self, external_key: str, fd: Optional[FieldDescriptor]) -> None:
        log.info(
            "%s",
            {
                "event": "field_mapping",
                "shape": self.shape.name,
                "key": external_key,
                "field": fd.name if fd else None,
                "column": fd.column_name if fd else None,
            },
        )


def resolve_field(shape: RecordShape, external_key: str) -> Optional[FieldDescriptor]:
    return FieldMapper(shape).resolve(external_key)
