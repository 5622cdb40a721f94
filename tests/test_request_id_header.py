def test_request_id_header_roundtrip(client):
    r = client.get("/health/live")
    assert r.status_code == 200
    assert "X-Request-Id" in r.headers
    assert len(r.headers["X-Request-Id"]) > 10


def test_request_id_passthrough(client):
    rid = "test-rid-123"
    r = client.get("/api/v1/dynamic/Inventory", headers={"X-Request-Id": rid})
    assert r.headers.get("X-Request-Id") == rid


def test_request_id_on_error_responses(client):
    r = client.get("/api/v1/dynamic/Employees")
    assert r.status_code == 404
    assert "x-request-id" in {k.lower() for k in r.headers.keys()}
