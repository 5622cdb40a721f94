from __future__ import annotations

from typing import Any, Dict, Optional

from .models import PageSpec


def envelope(status: bool, message: str, data: Any = None, total: Optional[int] = None) -> Dict[str, Any]:
    """The uniform response wrapper. ``data`` defaults to an empty object."""
    if data is None:
        data = {}
    if total is None:
        total = len(data) if isinstance(data, list) else (1 if data else 0)
    return {"status": status, "message": message, "data": data, "totalData": total}


def paged_envelope(message: str, data: list, *, total_count: int, page: PageSpec) -> Dict[str, Any]:
    out = envelope(True, message, data, len(data))
    out.update(
        {
            "totalCount": total_count,
            "totalPages": page.total_pages(total_count),
            "currentPage": page.page,
            "pageSize": page.page_size,
        }
    )
    return out


def failure(message: str, data: Any = None) -> Dict[str, Any]:
    return envelope(False, message, data if data is not None else {}, 0)
