from __future__ import annotations

DYNAMIC_PREFIX = "/api/v1/dynamic"
LEGACY_DYNAMIC_PREFIX = "/api/DynamicCRUD"


def is_legacy_path(path: str) -> bool:
    """Paths under the deprecated alias of the dynamic surface."""
    return path == LEGACY_DYNAMIC_PREFIX or path.startswith(LEGACY_DYNAMIC_PREFIX + "/")
