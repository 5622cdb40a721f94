from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

_TRUE = ("1", "true", "yes")


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _env_int(name: str, default: int) -> int:
    raw = _env(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    env: str = "dev"
    store: str = "memory"
    data_dir: Path = Path("data")
    schema_file: Optional[Path] = None
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    security_headers_enabled: bool = False
    default_page_size: int = 10
    max_page_size: int = 1000
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8001

    @property
    def is_prod(self) -> bool:
        return self.env == "prod"


def load_settings() -> Settings:
    """Read DYNACRUD_* environment variables."""
    env = _env("DYNACRUD_ENV", "dev").lower()

    origins_raw = _env("DYNACRUD_CORS_ORIGINS")
    origins = [o.strip() for o in origins_raw.split(",") if o.strip()] if origins_raw else ["*"]

    sec = _env("DYNACRUD_SECURITY_HEADERS_ENABLED", "true" if env == "prod" else "false").lower() in _TRUE

    schema_file = _env("DYNACRUD_SCHEMA_FILE")

    default_page_size = _env_int("DYNACRUD_DEFAULT_PAGE_SIZE", 10)
    if default_page_size < 1:
        default_page_size = 10

    return Settings(
        env=env,
        store=_env("DYNACRUD_STORE", "memory").lower(),
        data_dir=Path(_env("DYNACRUD_DATA_DIR", "data")),
        schema_file=Path(schema_file) if schema_file else None,
        cors_origins=origins,
        security_headers_enabled=sec,
        default_page_size=default_page_size,
        max_page_size=max(default_page_size, _env_int("DYNACRUD_MAX_PAGE_SIZE", 1000)),
        log_level=_env("DYNACRUD_LOG_LEVEL", "INFO").upper(),
        host=_env("DYNACRUD_HOST", "0.0.0.0"),
        port=_env_int("DYNACRUD_PORT", 8001),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
