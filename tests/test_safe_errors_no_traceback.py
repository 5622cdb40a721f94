from fastapi.testclient import TestClient

from app.api.main import create_app


def test_unknown_route_is_enveloped(client):
    r = client.get("/api/v1/does/not/exist")
    assert r.status_code == 404
    body = r.json()
    assert body["status"] is False
    assert body["message"] == "Not Found"
    assert "Traceback" not in r.text


def test_unhandled_error_hides_traceback(settings, registry):
    app = create_app(settings, registry=registry)

    @app.get("/boom")
    def boom():
        raise RuntimeError("secret internals")

    c = TestClient(app)
    r = c.get("/boom", headers={"X-Request-Id": "rid-boom"})
    assert r.status_code == 500
    body = r.json()
    assert body["status"] is False
    assert body["message"] == "Internal Server Error"
    assert body["request_id"] == "rid-boom"
    assert "secret internals" not in r.text
    assert "Traceback" not in r.text
    assert 'File "' not in r.text
