from __future__ import annotations

import json
import logging
import re
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Generator, Iterable, List, Optional, Tuple

from .errors import ConcurrencyConflict, PersistenceFailure
from .models import QueryPlan, Record, SortDirection, StoredRecord

try:
    import fcntl as _fcntl
    _HAS_FCNTL = True
except ImportError:
    _HAS_FCNTL = False
    logging.getLogger("dynacrud.store").warning(
        "fcntl not available (non-POSIX). File locking is disabled. "
        "Do not run several processes against the same data directory on this platform."
    )

log = logging.getLogger("dynacrud.store")


class RecordStore(ABC):
    """Persistence engine seen by the record adapters.

    Every row carries a version that grows by one on each write; ``update``
    and ``delete`` compare it with the caller's copy and raise
    ConcurrencyConflict on a mismatch or when the row has vanished.
    """

    name: str

    @abstractmethod
    def get(self, collection: str, record_id: int) -> Optional[StoredRecord]:
        """Point lookup by primary key."""

    @abstractmethod
    def query(self, collection: str, plan: QueryPlan) -> Tuple[List[StoredRecord], int]:
        """Run ``plan``; return (page rows, count of the filtered set before paging)."""

    @abstractmethod
    def insert(self, collection: str, values: Record, *, key_field: str) -> StoredRecord:
        """Assign the next id to ``values[key_field]`` and store the row."""

    @abstractmethod
    def update(self, collection: str, record_id: int, values: Record, *, expected_version: int) -> StoredRecord:
        """Replace the row's values."""

    @abstractmethod
    def delete(self, collection: str, record_id: int, *, expected_version: Optional[int] = None) -> None:
        """Remove the row."""

    def exists(self, collection: str, record_id: int) -> bool:
        return self.get(collection, record_id) is not None


# ------------------------------------------------------------
# QueryPlan interpretation shared by the bundled engines
# ------------------------------------------------------------
def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _matches(values: Record, plan: QueryPlan) -> bool:
    flt = plan.filter
    if flt is None or not flt.fields:
        return True
    if flt.op != "contains":
        raise PersistenceFailure(f"unsupported filter operator: {flt.op}")
    for name in flt.fields:
        v = values.get(name)
        if v is not None and flt.operand in _as_text(v):
            return True
    return False


def _sort_key(field: str):
    def key(row: StoredRecord):
        v = row.values.get(field)
        if v is None:
            return (0, 0)
        if isinstance(v, datetime) and v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        return (1, v)

    return key


def execute_plan(rows: Iterable[StoredRecord], plan: QueryPlan) -> Tuple[List[StoredRecord], int]:
    selected = [r for r in rows if _matches(r.values, plan)]

    if plan.order is not None:
        try:
            selected.sort(
                key=_sort_key(plan.order.field),
                reverse=plan.order.direction == SortDirection.DESC,
            )
        except TypeError as e:
            raise PersistenceFailure(f"cannot order by {plan.order.field}: {e}") from e

    total = len(selected)
    if plan.page is not None:
        start = plan.page.offset
        selected = selected[start : start + plan.page.page_size]
    return selected, total


def _copy(row: StoredRecord) -> StoredRecord:
    return StoredRecord(id=row.id, version=row.version, values=dict(row.values))


# ------------------------------------------------------------
# In-memory engine
# ------------------------------------------------------------
class InMemoryRecordStore(RecordStore):
    name = "memory"

    def __init__(self) -> None:
        self._tables: Dict[str, Dict[int, StoredRecord]] = {}
        self._lock = threading.Lock()

    def _table(self, collection: str) -> Dict[int, StoredRecord]:
        return self._tables.setdefault(collection, {})

    def get(self, collection: str, record_id: int) -> Optional[StoredRecord]:
        with self._lock:
            row = self._table(collection).get(record_id)
            return _copy(row) if row is not None else None

    def query(self, collection: str, plan: QueryPlan) -> Tuple[List[StoredRecord], int]:
        with self._lock:
            rows = [_copy(r) for r in sorted(self._table(collection).values(), key=lambda r: r.id)]
        return execute_plan(rows, plan)

    def insert(self, collection: str, values: Record, *, key_field: str) -> StoredRecord:
        with self._lock:
            table = self._table(collection)
            new_id = max(table, default=0) + 1
            stored = dict(values)
            stored[key_field] = new_id
            row = StoredRecord(id=new_id, version=1, values=stored)
            table[new_id] = row
            return _copy(row)

    def update(self, collection: str, record_id: int, values: Record, *, expected_version: int) -> StoredRecord:
        with self._lock:
            table = self._table(collection)
            current = table.get(record_id)
            if current is None or current.version != expected_version:
                raise ConcurrencyConflict(collection, record_id, expected_version)
            row = StoredRecord(id=record_id, version=current.version + 1, values=dict(values))
            table[record_id] = row
            return _copy(row)

    def delete(self, collection: str, record_id: int, *, expected_version: Optional[int] = None) -> None:
        with self._lock:
            table = self._table(collection)
            current = table.get(record_id)
            if current is None or (expected_version is not None and current.version != expected_version):
                raise ConcurrencyConflict(collection, record_id, expected_version)
            del table[record_id]


# ------------------------------------------------------------
# File-backed JSON engine
# ------------------------------------------------------------
_SAFE_NAME = re.compile(r"[^A-Za-z0-9_.-]")


def _encode_value(v: Any) -> Any:
    if isinstance(v, Decimal):
        return {"$decimal": str(v)}
    if isinstance(v, datetime):
        return {"$datetime": v.isoformat()}
    return v


def _decode_value(v: Any) -> Any:
    if isinstance(v, dict):
        if "$decimal" in v:
            return Decimal(v["$decimal"])
        if "$datetime" in v:
            return datetime.fromisoformat(v["$datetime"])
    return v


@contextmanager
def _locked(path: Path) -> Generator[None, None, None]:
    """Exclusive flock on ``path`` (POSIX only). No-op elsewhere."""
    with open(path, "a+", encoding="utf-8") as fh:
        if _HAS_FCNTL:
            _fcntl.flock(fh, _fcntl.LOCK_EX)
        try:
            yield
        finally:
            if _HAS_FCNTL:
                _fcntl.flock(fh, _fcntl.LOCK_UN)


class JsonFileRecordStore(RecordStore):
    """File-backed engine.

    Path: <root>/<collection>.json, writers serialised by <collection>.lock
    """

    name = "json"

    def __init__(self, *, root: Path):
        self.root = Path(root)
        self._lock = threading.RLock()

    def _paths(self, collection: str) -> Tuple[Path, Path]:
        safe = _SAFE_NAME.sub("_", collection)
        return self.root / f"{safe}.json", self.root / f"{safe}.lock"

    def _load(self, path: Path) -> Dict[int, StoredRecord]:
        if not path.exists():
            return {}
        obj = json.loads(path.read_text(encoding="utf-8") or "{}")
        rows: Dict[int, StoredRecord] = {}
        for r in obj.get("rows", []):
            values = {k: _decode_value(v) for k, v in (r.get("values") or {}).items()}
            rows[int(r["id"])] = StoredRecord(id=int(r["id"]), version=int(r["version"]), values=values)
        return rows

    def _save(self, path: Path, collection: str, rows: Dict[int, StoredRecord]) -> None:
        obj = {
            "kind": "collection",
            "name": collection,
            "rows": [
                {
                    "id": r.id,
                    "version": r.version,
                    "values": {k: _encode_value(v) for k, v in r.values.items()},
                }
                for r in sorted(rows.values(), key=lambda r: r.id)
            ],
        }
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(obj, indent=2, sort_keys=True), encoding="utf-8")
        tmp.replace(path)

    @contextmanager
    def _table(self, collection: str, *, write: bool = False) -> Generator[Dict[int, StoredRecord], None, None]:
        data_path, lock_path = self._paths(collection)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            with self._lock, _locked(lock_path):
                rows = self._load(data_path)
                yield rows
                if write:
                    self._save(data_path, collection, rows)
        except (OSError, ValueError, KeyError) as e:
            log.error("%s", {"event": "store_failure", "collection": collection, "error": str(e)})
            raise PersistenceFailure(f"storage error on {collection}: {e}") from e

    def get(self, collection: str, record_id: int) -> Optional[StoredRecord]:
        with self._table(collection) as rows:
            return rows.get(record_id)

    def query(self, collection: str, plan: QueryPlan) -> Tuple[List[StoredRecord], int]:
        with self._table(collection) as rows:
            ordered = sorted(rows.values(), key=lambda r: r.id)
        return execute_plan(ordered, plan)

    def insert(self, collection: str, values: Record, *, key_field: str) -> StoredRecord:
        with self._table(collection, write=True) as rows:
            new_id = max(rows, default=0) + 1
            stored = dict(values)
            stored[key_field] = new_id
            row = StoredRecord(id=new_id, version=1, values=stored)
            rows[new_id] = row
        return _copy(row)

    def update(self, collection: str, record_id: int, values: Record, *, expected_version: int) -> StoredRecord:
        with self._table(collection, write=True) as rows:
            current = rows.get(record_id)
            if current is None or current.version != expected_version:
                raise ConcurrencyConflict(collection, record_id, expected_version)
            row = StoredRecord(id=record_id, version=current.version + 1, values=dict(values))
            rows[record_id] = row
        return _copy(row)

    def delete(self, collection: str, record_id: int, *, expected_version: Optional[int] = None) -> None:
        with self._table(collection, write=True) as rows:
            current = rows.get(record_id)
            if current is None or (expected_version is not None and current.version != expected_version):
                raise ConcurrencyConflict(collection, record_id, expected_version)
            del rows[record_id]


def build_store(kind: str, *, data_dir: Optional[Path] = None) -> RecordStore:
    k = (kind or "memory").strip().lower()
    if k == "memory":
        return InMemoryRecordStore()
    if k == "json":
        return JsonFileRecordStore(root=data_dir or Path("data"))
    raise ValueError(f"unknown store kind: {kind!r} (expected 'memory' or 'json')")
