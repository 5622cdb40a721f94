from pathlib import Path

import pytest

from app.core.settings import get_settings, load_settings

_VARS = [
    "DYNACRUD_ENV",
    "DYNACRUD_STORE",
    "DYNACRUD_DATA_DIR",
    "DYNACRUD_SCHEMA_FILE",
    "DYNACRUD_CORS_ORIGINS",
    "DYNACRUD_SECURITY_HEADERS_ENABLED",
    "DYNACRUD_DEFAULT_PAGE_SIZE",
    "DYNACRUD_MAX_PAGE_SIZE",
    "DYNACRUD_LOG_LEVEL",
]


@pytest.fixture()
def clean_env(monkeypatch):
    for v in _VARS:
        monkeypatch.delenv(v, raising=False)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


def test_defaults(clean_env):
    s = load_settings()
    assert s.env == "dev"
    assert s.store == "memory"
    assert s.data_dir == Path("data")
    assert s.schema_file is None
    assert s.cors_origins == ["*"]
    assert s.security_headers_enabled is False
    assert s.default_page_size == 10
    assert s.max_page_size == 1000
    assert not s.is_prod


def test_env_overrides(clean_env, tmp_path):
    clean_env.setenv("DYNACRUD_ENV", "PROD")
    clean_env.setenv("DYNACRUD_STORE", "json")
    clean_env.setenv("DYNACRUD_DATA_DIR", str(tmp_path))
    clean_env.setenv("DYNACRUD_SCHEMA_FILE", str(tmp_path / "schema.yaml"))
    clean_env.setenv("DYNACRUD_CORS_ORIGINS", "http://a.test, http://b.test")
    clean_env.setenv("DYNACRUD_DEFAULT_PAGE_SIZE", "25")
    clean_env.setenv("DYNACRUD_LOG_LEVEL", "debug")

    s = get_settings()
    assert s.is_prod
    assert s.security_headers_enabled is True
    assert s.store == "json"
    assert s.data_dir == tmp_path
    assert s.schema_file == tmp_path / "schema.yaml"
    assert s.cors_origins == ["http://a.test", "http://b.test"]
    assert s.default_page_size == 25
    assert s.log_level == "DEBUG"
    assert get_settings() is s


def test_bad_integer_is_rejected(clean_env):
    clean_env.setenv("DYNACRUD_DEFAULT_PAGE_SIZE", "ten")
    with pytest.raises(ValueError):
        load_settings()
