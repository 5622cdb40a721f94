from fastapi.testclient import TestClient

from app.api.main import create_app
from app.api.observability.metrics import normalize_path
from app.core.observability.metrics import reset_metrics, snapshot_named
from app.core.settings import Settings


def test_health_endpoints(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/health/live").json() == {"status": "alive"}
    assert client.get("/health/ready").json() == {"status": "ready", "store": "memory"}


def test_ready_with_json_store(tmp_path):
    settings = Settings(env="test", store="json", data_dir=tmp_path / "data")
    c = TestClient(create_app(settings))
    r = c.get("/health/ready")
    assert r.status_code == 200
    assert r.json()["store"] == "json"


def test_prometheus_metrics_exposed(client):
    client.get("/api/v1/dynamic/Inventory/1")
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "dynacrud_http_requests_total" in r.text
    assert 'path="/api/v1/dynamic/:collection/:id"' in r.text
    assert "dynacrud_record_operations_total" in r.text


def test_named_snapshot_counts_outcomes(client):
    reset_metrics()
    client.post("/api/v1/dynamic/Inventory", json={"name": "bolt"})
    client.post("/api/v1/dynamic/Inventory", json={"quantity": "many"})
    client.get("/api/v1/dynamic/Inventory/7")
    counters = client.get("/api/v1/metrics/snapshot").json()["counters"]
    assert counters["records_create_ok"] == 1
    assert counters["records_create_400"] == 1
    assert counters["records_get_404"] == 1
    assert counters["coercion_failures"] == 1
    assert snapshot_named() == counters


def test_security_headers_when_enabled(registry):
    c = TestClient(create_app(Settings(env="test", security_headers_enabled=True), registry=registry))
    r = c.get("/health")
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"


def test_normalize_path():
    assert normalize_path("/api/v1/dynamic/FinancialReports/12") == "/api/v1/dynamic/:collection/:id"
    assert normalize_path("/api/DynamicCRUD/Inventory/paginated") == "/api/DynamicCRUD/:collection/paginated"
    assert normalize_path("/api/v1/collections/Inventory") == "/api/v1/collections/:collection"
    assert normalize_path("/api/v1/financial-reports/3") == "/api/v1/financial-reports/:id"
    assert normalize_path("") == "/"
