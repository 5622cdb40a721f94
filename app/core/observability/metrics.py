from __future__ import annotations

from collections import Counter
from typing import Dict

from prometheus_client import Counter as PromCounter

# Named counters (custom, in-process snapshot)
_NAMED = Counter()

RECORD_OPERATIONS_TOTAL = PromCounter(
    "dynacrud_record_operations_total",
    "Record operations handled by the CRUD orchestrator",
    ["collection", "operation", "outcome"],
)

COERCION_FAILURES_TOTAL = PromCounter(
    "dynacrud_coercion_failures_total",
    "Payload values rejected by the coercion engine",
    ["collection", "kind"],
)


def reset_metrics() -> None:
    """
    Test helper: clears the in-process counters to avoid cross-test leakage.
    Prometheus collectors are process-global and are left alone.
    """
    _NAMED.clear()


def inc_named(name: str, value: int = 1) -> None:
    if not name:
        return
    _NAMED[name] += int(value)


def record_operation(collection: str, operation: str, outcome: str) -> None:
    RECORD_OPERATIONS_TOTAL.labels(collection=collection, operation=operation, outcome=outcome).inc()
    inc_named(f"records_{operation}_{outcome}")


def coercion_failure(collection: str, kind: str) -> None:
    COERCION_FAILURES_TOTAL.labels(collection=collection, kind=kind).inc()
    inc_named("coercion_failures")


def snapshot_named() -> Dict[str, int]:
    return dict(_NAMED)
