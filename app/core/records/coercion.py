"""
Coercion engine.

Turns an untyped scalar taken from a JSON payload (or a CSV cell) into the
value a field declares. One coercion function per FieldKind; the table is
closed, so adding a kind means adding an entry here.

Precedence:
  1) null handling (nullable / reference kinds only)
  2) the kind's own rule (enum, datetime, boolean, string, decimal, numeric)
  3) any conversion failure the rule did not anticipate is wrapped in a
     CoercionError naming the field and the attempted value
"""
from __future__ import annotations

import math
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Optional

from .errors import CoercionError
from .models import FieldDescriptor, FieldKind

Coercer = Callable[[Any, FieldDescriptor, str], Any]

DATETIME_FORMAT_HINT = "YYYY-MM-DDTHH:MM:SS"

# ASCII-only base-10 literals; no digit separators, no non-ASCII digits.
_INTEGER_LITERAL = re.compile(r"[+-]?[0-9]+\Z")
_REAL_LITERAL = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?\Z")
_FRACTION = re.compile(r"(T[0-9]{2}:[0-9]{2}:[0-9]{2})\.([0-9]+)")


def _text(raw: Any) -> str:
    if isinstance(raw, bool):
        return "true" if raw else "false"
    return str(raw)


def _null_or_reject(fd: FieldDescriptor, label: str) -> None:
    if fd.accepts_null:
        return None
    raise CoercionError(label, "cannot be null", kind=fd.kind.value)


def _coerce_enum(raw: Any, fd: FieldDescriptor, label: str) -> str:
    text = _text(raw).strip()
    if text in fd.variants:
        return text
    raise CoercionError(
        label,
        f"Invalid enum value for {label}. Valid values: {', '.join(fd.variants)}",
        kind=fd.kind.value,
    )


def parse_datetime(text: str) -> datetime:
    s = text.strip()
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    # fromisoformat before 3.11 wants exactly 3 or 6 fractional digits.
    s = _FRACTION.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", s, count=1)
    return datetime.fromisoformat(s)


def _coerce_datetime(raw: Any, fd: FieldDescriptor, label: str) -> datetime:
    if isinstance(raw, datetime):
        return raw
    try:
        return parse_datetime(_text(raw))
    except ValueError:
        raise CoercionError(
            label,
            f"Invalid date format for {label}. Expected format: {DATETIME_FORMAT_HINT}",
            kind=fd.kind.value,
        ) from None


def _coerce_boolean(raw: Any, fd: FieldDescriptor, label: str) -> bool:
    text = _text(raw).strip().lower()
    if text == "true":
        return True
    if text == "false":
        return False
    raise CoercionError(label, f"Invalid boolean value for {label}. Expected true/false", kind=fd.kind.value)


def _coerce_string(raw: Any, fd: FieldDescriptor, label: str) -> str:
    return _text(raw)


def _coerce_decimal(raw: Any, fd: FieldDescriptor, label: str) -> Decimal:
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, bool):
        raise CoercionError(label, f"Invalid decimal value for {label}", kind=fd.kind.value)
    else:
        text = _text(raw).strip()
        if not _REAL_LITERAL.match(text):
            raise CoercionError(label, f"Invalid decimal value for {label}", kind=fd.kind.value)
        try:
            value = Decimal(text)
        except InvalidOperation:
            raise CoercionError(label, f"Invalid decimal value for {label}", kind=fd.kind.value) from None
    if not value.is_finite():
        raise CoercionError(label, f"Invalid decimal value for {label}", kind=fd.kind.value)
    return value


def _coerce_integer(raw: Any, fd: FieldDescriptor, label: str) -> Optional[int]:
    if isinstance(raw, bool):
        raise CoercionError(label, f"Invalid numeric value for {label}. Expected a number", kind=fd.kind.value)
    if isinstance(raw, int):
        value = raw
    else:
        text = _text(raw).strip()
        if not text:
            return _null_or_reject(fd, label)
        if not _INTEGER_LITERAL.match(text):
            raise CoercionError(label, f"Invalid numeric value for {label}. Expected a number", kind=fd.kind.value)
        value = int(text)
    lo, hi = fd.integer_bounds()
    if not lo <= value <= hi:
        sign = "signed" if fd.signed else "unsigned"
        raise CoercionError(
            label,
            f"Value {value} is out of range for a {fd.width}-bit {sign} integer ({lo}..{hi})",
            kind=fd.kind.value,
        )
    return value


def _coerce_float(raw: Any, fd: FieldDescriptor, label: str) -> Optional[float]:
    if isinstance(raw, bool):
        raise CoercionError(label, f"Invalid numeric value for {label}. Expected a number", kind=fd.kind.value)
    if isinstance(raw, float):
        value = raw
    else:
        text = _text(raw).strip()
        if not text:
            return _null_or_reject(fd, label)
        if not _REAL_LITERAL.match(text):
            raise CoercionError(label, f"Invalid numeric value for {label}. Expected a number", kind=fd.kind.value)
        value = float(text)
    if not math.isfinite(value):
        raise CoercionError(label, f"Invalid numeric value for {label}. Expected a finite number", kind=fd.kind.value)
    return value


COERCERS: Dict[FieldKind, Coercer] = {
    FieldKind.ENUM: _coerce_enum,
    FieldKind.DATETIME: _coerce_datetime,
    FieldKind.BOOLEAN: _coerce_boolean,
    FieldKind.STRING: _coerce_string,
    FieldKind.DECIMAL: _coerce_decimal,
    FieldKind.INTEGER: _coerce_integer,
    FieldKind.FLOAT: _coerce_float,
}


def coerce(raw: Any, fd: FieldDescriptor, key: Optional[str] = None) -> Any:
    """Coerce ``raw`` into the declared type of ``fd``.

    ``key`` is the external name the value arrived under; error messages use
    it so the caller sees the spelling they sent.
    """
    label = key or fd.name

    if raw is None:
        return _null_or_reject(fd, label)

    if isinstance(raw, (dict, list, tuple, set)):
        raise CoercionError(label, "expected a scalar value", kind=fd.kind.value)

    coercer = COERCERS[fd.kind]
    try:
        return coercer(raw, fd, label)
    except CoercionError:
        raise
    except (ValueError, TypeError, ArithmeticError) as e:
        raise CoercionError(
            label,
            f"Failed to convert value '{_text(raw)}' for property '{label}' to type {fd.kind.value}. {e}",
            kind=fd.kind.value,
        ) from e
