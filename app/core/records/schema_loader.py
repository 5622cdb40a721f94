"""
Schema declaration loader.

Reads an optional YAML/JSON file of extra record shapes and merges it with
the built-in declarations. This allows new collections without code
changes.

File format (YAML or JSON):
    collections:
      - name: Suppliers
        model: Supplier
        fields:
          - {name: id, kind: integer, primary_key: true}
          - {name: company_name, kind: string, required: true, column: company}
          - {name: tier, kind: enum, variants: [Gold, Silver, Bronze]}

Environment variable:
    DYNACRUD_SCHEMA_FILE: path to the declaration file (optional).
"""
from __future__ import annotations

import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .builtins import builtin_collections
from .models import FieldDescriptor, FieldKind, RecordShape, utc_now

_log = logging.getLogger("dynacrud.registry")

_KIND_ALIASES: Dict[str, FieldKind] = {
    "str": FieldKind.STRING,
    "string": FieldKind.STRING,
    "text": FieldKind.STRING,
    "bool": FieldKind.BOOLEAN,
    "boolean": FieldKind.BOOLEAN,
    "int": FieldKind.INTEGER,
    "integer": FieldKind.INTEGER,
    "float": FieldKind.FLOAT,
    "double": FieldKind.FLOAT,
    "decimal": FieldKind.DECIMAL,
    "money": FieldKind.DECIMAL,
    "datetime": FieldKind.DATETIME,
    "date": FieldKind.DATETIME,
    "enum": FieldKind.ENUM,
}


def _parse_field(raw: Dict[str, Any]) -> FieldDescriptor:
    if not isinstance(raw, dict):
        raise ValueError(f"field declaration must be a mapping, got {type(raw).__name__}")
    name = str(raw.get("name") or "").strip()
    kind_raw = str(raw.get("kind") or "").strip().lower()
    if kind_raw not in _KIND_ALIASES:
        raise ValueError(f"field '{name}': unknown kind {raw.get('kind')!r}")
    kind = _KIND_ALIASES[kind_raw]

    default = raw.get("default")
    default_factory = None
    if kind == FieldKind.DATETIME and isinstance(default, str) and default.lower() == "now":
        default, default_factory = None, utc_now
    elif kind == FieldKind.DECIMAL and default is not None:
        default = Decimal(str(default))

    return FieldDescriptor(
        name=name,
        kind=kind,
        column=raw.get("column"),
        nullable=bool(raw.get("nullable", False)),
        required=bool(raw.get("required", False)),
        writable=bool(raw.get("writable", True)),
        primary_key=bool(raw.get("primary_key", False)),
        width=int(raw.get("width", 32)),
        signed=bool(raw.get("signed", True)),
        variants=tuple(str(v) for v in (raw.get("variants") or ())),
        default=default,
        default_factory=default_factory,
    )


def parse_declarations(data: Any) -> List[Tuple[str, RecordShape]]:
    """Turn a parsed declaration document into (collection, shape) pairs.

    A bad collection is skipped with a warning; the rest still load.
    """
    if not isinstance(data, dict) or not isinstance(data.get("collections"), list):
        _log.warning("Schema declarations must be a mapping with a 'collections' list; ignoring")
        return []

    out: List[Tuple[str, RecordShape]] = []
    for entry in data["collections"]:
        try:
            if not isinstance(entry, dict):
                raise ValueError("collection declaration must be a mapping")
            name = str(entry.get("name") or "").strip()
            if not name:
                raise ValueError("collection declaration has no name")
            model = str(entry.get("model") or name).strip()
            fields = [_parse_field(f) for f in (entry.get("fields") or [])]
            out.append((name, RecordShape(model, fields)))
        except (ValueError, TypeError, ArithmeticError) as exc:
            _log.warning("Skipping invalid collection declaration %r: %s", entry, exc)
    return out


def load_declarations(path: Optional[Path]) -> List[Tuple[str, RecordShape]]:
    """Load extra declarations from a YAML or JSON file.

    Returns an empty list if the file is absent, unreadable or malformed.
    """
    if path is None or not path.exists():
        return []
    try:
        raw_text = path.read_text(encoding="utf-8")
    except OSError as exc:
        _log.warning("Could not read schema file %s: %s", path, exc)
        return []

    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            _log.warning("Failed to parse schema file %s as JSON or YAML: %s", path, exc)
            return []

    decls = parse_declarations(data)
    if decls:
        _log.info("Loaded %d collection declarations from %s", len(decls), path)
    return decls


def all_declarations(schema_file: Optional[Path] = None) -> List[Tuple[str, RecordShape]]:
    """Built-ins first, then file declarations; a file entry replaces a built-in of the same name."""
    merged: Dict[str, Tuple[str, RecordShape]] = {}
    for name, shape in builtin_collections():
        merged[name.casefold()] = (name, shape)
    for name, shape in load_declarations(schema_file):
        if name.casefold() in merged:
            _log.info("Schema file overrides built-in collection %s", name)
        merged[name.casefold()] = (name, shape)
    return list(merged.values())
