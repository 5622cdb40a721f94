from __future__ import annotations

import re
from typing import List, Tuple

from prometheus_client import Counter, Histogram

# Applied in order; record ids first so the collection rules see ":id" segments.
_PATH_RULES: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"/\d+(?=/|$)"), "/:id"),
    (re.compile(r"^(/api/v1/dynamic|/api/DynamicCRUD)/[^/]+"), r"\1/:collection"),
    (re.compile(r"^(/api/v1/collections)/[^/]+$"), r"\1/:collection"),
]


def normalize_path(path: str) -> str:
    """Collapse record ids and collection tokens so label cardinality stays bounded."""
    p = path or "/"
    for pattern, repl in _PATH_RULES:
        p = pattern.sub(repl, p)
    return p


HTTP_REQUESTS_TOTAL = Counter(
    "dynacrud_http_requests_total",
    "HTTP requests by method, normalized path and status",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "dynacrud_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "path"],
)


def observe_request(method: str, path: str, status: int, seconds: float) -> None:
    p = normalize_path(path)
    m = method.upper()
    HTTP_REQUESTS_TOTAL.labels(method=m, path=p, status=str(status)).inc()
    HTTP_REQUEST_DURATION_SECONDS.labels(method=m, path=p).observe(seconds)
