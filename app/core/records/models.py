from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

Record = Dict[str, Any]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FieldKind(str, Enum):
    STRING = "string"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    DATETIME = "datetime"
    ENUM = "enum"


# Kinds whose values are primitive value types; null is only accepted
# for them when the descriptor is declared nullable.
VALUE_KINDS = frozenset(
    {
        FieldKind.BOOLEAN,
        FieldKind.INTEGER,
        FieldKind.FLOAT,
        FieldKind.DECIMAL,
        FieldKind.DATETIME,
        FieldKind.ENUM,
    }
)

INTEGER_WIDTHS = (8, 16, 32, 64)


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    kind: FieldKind
    column: Optional[str] = None
    nullable: bool = False
    required: bool = False
    writable: bool = True
    primary_key: bool = False

    # INTEGER only
    width: int = 32
    signed: bool = True

    # ENUM only
    variants: Tuple[str, ...] = ()

    default: Any = None
    default_factory: Optional[Callable[[], Any]] = None

    # Derived fields are recomputed from the rest of the record on every write.
    derive: Optional[Callable[[Record], Any]] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("field name must not be empty")
        if self.kind == FieldKind.ENUM and not self.variants:
            raise ValueError(f"enum field '{self.name}' declares no variants")
        if self.kind == FieldKind.INTEGER and self.width not in INTEGER_WIDTHS:
            raise ValueError(f"integer field '{self.name}' has unsupported width {self.width}")
        if self.primary_key and self.kind != FieldKind.INTEGER:
            raise ValueError(f"primary key '{self.name}' must be an integer field")

    @property
    def column_name(self) -> str:
        return self.column or self.name

    @property
    def accepts_null(self) -> bool:
        return self.nullable or self.kind not in VALUE_KINDS

    @property
    def is_derived(self) -> bool:
        return self.derive is not None

    def integer_bounds(self) -> Tuple[int, int]:
        if self.signed:
            half = 1 << (self.width - 1)
            return -half, half - 1
        return 0, (1 << self.width) - 1

    def initial_value(self) -> Any:
        if self.default_factory is not None:
            return self.default_factory()
        if self.default is not None:
            return self.default
        if self.accepts_null:
            return None
        return _ZERO_VALUES[self.kind](self)

    def describe(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "name": self.name,
            "column": self.column_name,
            "kind": self.kind.value,
            "nullable": self.nullable,
            "required": self.required,
            "writable": self.writable and not self.is_derived and not self.primary_key,
            "primary_key": self.primary_key,
        }
        if self.kind == FieldKind.INTEGER:
            out["width"] = self.width
            out["signed"] = self.signed
        if self.kind == FieldKind.ENUM:
            out["variants"] = list(self.variants)
        return out


_ZERO_VALUES: Dict[FieldKind, Callable[[FieldDescriptor], Any]] = {
    FieldKind.BOOLEAN: lambda fd: False,
    FieldKind.INTEGER: lambda fd: 0,
    FieldKind.FLOAT: lambda fd: 0.0,
    FieldKind.DECIMAL: lambda fd: Decimal("0"),
    FieldKind.DATETIME: lambda fd: datetime(1, 1, 1),
    FieldKind.ENUM: lambda fd: fd.variants[0],
}


class RecordShape:
    """Static description of one record type.

    Built once at startup from schema declarations and never mutated.
    """

    def __init__(self, name: str, fields: List[FieldDescriptor]):
        if not name:
            raise ValueError("record shape name must not be empty")
        self.name = name
        self.fields: Tuple[FieldDescriptor, ...] = tuple(fields)
        self._by_name: Dict[str, FieldDescriptor] = {}
        self._validate()

    def _validate(self) -> None:
        columns: set[str] = set()
        keys: List[FieldDescriptor] = []
        for fd in self.fields:
            if fd.name in self._by_name:
                raise ValueError(f"{self.name}: duplicate field name '{fd.name}'")
            if fd.column is not None:
                if fd.column in columns:
                    raise ValueError(f"{self.name}: duplicate column alias '{fd.column}'")
                columns.add(fd.column)
            self._by_name[fd.name] = fd
            if fd.primary_key:
                keys.append(fd)
        if len(keys) != 1:
            raise ValueError(f"{self.name}: exactly one primary key field is required, got {len(keys)}")
        self.primary_key: FieldDescriptor = keys[0]

    def field(self, name: str) -> Optional[FieldDescriptor]:
        return self._by_name.get(name)

    @property
    def string_fields(self) -> List[FieldDescriptor]:
        return [fd for fd in self.fields if fd.kind == FieldKind.STRING]

    @property
    def required_fields(self) -> List[FieldDescriptor]:
        return [fd for fd in self.fields if fd.required]

    def new_record(self) -> Record:
        rec: Record = {}
        for fd in self.fields:
            if fd.is_derived:
                continue
            rec[fd.name] = fd.initial_value()
        return rec

    def materialize(self, rec: Record) -> Record:
        """Return a copy of ``rec`` in declared field order with derived fields filled."""
        out: Record = {}
        for fd in self.fields:
            if fd.is_derived:
                continue
            out[fd.name] = rec.get(fd.name, fd.initial_value())
        for fd in self.fields:
            if fd.is_derived:
                out[fd.name] = fd.derive(out)
        return {fd.name: out[fd.name] for fd in self.fields}

    def __repr__(self) -> str:
        return f"RecordShape({self.name!r}, fields={[f.name for f in self.fields]!r})"


@dataclass
class StoredRecord:
    id: int
    version: int
    values: Record = field(default_factory=dict)


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "SortDirection":
        if raw is not None and raw.strip().lower() == "desc":
            return cls.DESC
        return cls.ASC


@dataclass(frozen=True)
class PageSpec:
    page: int = 1
    page_size: int = 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def total_pages(self, total: int) -> int:
        return -(-total // self.page_size) if total > 0 else 0


@dataclass(frozen=True)
class FilterClause:
    """Logical OR of ``<field> <op> <operand>`` over ``fields``."""

    fields: Tuple[str, ...]
    operand: str
    op: str = "contains"


@dataclass(frozen=True)
class OrderClause:
    field: str
    direction: SortDirection = SortDirection.ASC


@dataclass(frozen=True)
class QueryPlan:
    collection: str
    filter: Optional[FilterClause] = None
    order: Optional[OrderClause] = None
    page: Optional[PageSpec] = None

    def describe(self) -> Dict[str, Any]:
        return {
            "collection": self.collection,
            "filter": None
            if self.filter is None
            else {"fields": list(self.filter.fields), "op": self.filter.op, "operand": self.filter.operand},
            "order": None
            if self.order is None
            else {"field": self.order.field, "direction": self.order.direction.value},
            "page": None if self.page is None else {"page": self.page.page, "page_size": self.page.page_size},
        }
