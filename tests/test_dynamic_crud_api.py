import pytest

BASE = "/api/v1/dynamic"

REPORT = {
    "ReportDate": "2024-03-01T00:00:00",
    "Title": "Q1",
    "Description": "first quarter",
    "Income": "1000.50",
    "Expense": "200",
}


def test_create_returns_201_location_and_balance(client):
    r = client.post(f"{BASE}/FinancialReports", json=REPORT)
    assert r.status_code == 201
    assert r.headers["location"] == f"{BASE}/FinancialReports/1"
    body = r.json()
    assert body["status"] is True
    assert body["totalData"] == 1
    assert body["data"]["balance"] == pytest.approx(800.50)
    assert body["data"]["report_date"].startswith("2024-03-01T00:00:00")

    got = client.get(r.headers["location"]).json()
    assert got["data"]["title"] == "Q1"


def test_get_missing_record(client):
    r = client.get(f"{BASE}/FinancialReports/42")
    assert r.status_code == 404
    assert r.json() == {
        "status": False,
        "message": "Data with id 42 not found",
        "data": {},
        "totalData": 0,
    }


def test_unknown_collection_lists_catalog(client):
    r = client.get(f"{BASE}/Employees")
    assert r.status_code == 404
    body = r.json()
    assert body["status"] is False
    assert "Collection 'Employees' not found" in body["message"]
    assert "Inventory (Model: Inventory)" in body["message"]
    assert len(body["data"]["available"]) == 3


def test_bad_value_is_400_envelope(client):
    r = client.post(f"{BASE}/DailyTasks", json={"title": "x", "dueDate": "tomorrow", "completed": "false"})
    assert r.status_code == 400
    body = r.json()
    assert body["status"] is False
    assert "Expected format: YYYY-MM-DDTHH:MM:SS" in body["message"]


def test_empty_body_is_rejected(client):
    r = client.post(f"{BASE}/Inventory")
    assert r.status_code == 400
    assert r.json()["message"] == "Request body cannot be null"


def test_non_object_body_is_400_envelope(client):
    r = client.post(f"{BASE}/Inventory", json=[1, 2, 3])
    assert r.status_code == 400
    body = r.json()
    assert body["status"] is False
    assert body["message"].startswith("Invalid request:")


def test_non_integer_id_is_400_envelope(client):
    r = client.get(f"{BASE}/Inventory/abc")
    assert r.status_code == 400
    assert r.json()["status"] is False


def test_list_filter_sort_and_paging(client):
    for name in ("Widget", "Gadget", "Gizmo"):
        assert client.post(f"{BASE}/Inventory", json={"name": name}).status_code == 201

    body = client.get(f"{BASE}/Inventory", params={"filter": "et"}).json()
    assert [d["name"] for d in body["data"]] == ["Widget", "Gadget"]
    assert "totalCount" not in body

    body = client.get(f"{BASE}/Inventory", params={"sort": "Name", "sortDirection": "desc"}).json()
    assert [d["name"] for d in body["data"]] == ["Widget", "Gizmo", "Gadget"]

    body = client.get(f"{BASE}/Inventory", params={"sort": "nope"}).json()
    assert [d["name"] for d in body["data"]] == ["Widget", "Gadget", "Gizmo"]

    body = client.get(f"{BASE}/Inventory", params={"page": 2, "pageSize": 2}).json()
    assert body["totalCount"] == 3
    assert body["totalPages"] == 2
    assert [d["name"] for d in body["data"]] == ["Gizmo"]


def test_paginated_endpoint(client):
    for i in range(25):
        client.post(f"{BASE}/Inventory", json={"name": f"item-{i:02d}", "quantity": str(i)})

    body = client.get(f"{BASE}/Inventory/paginated", params={"page": 3}).json()
    assert body["totalCount"] == 25
    assert body["totalPages"] == 3
    assert body["currentPage"] == 3
    assert body["pageSize"] == 10
    assert len(body["data"]) == 5


def test_update_and_delete(client):
    client.post(f"{BASE}/Inventory", json={"name": "bolt", "quantity": 3, "price": "0.25"})

    r = client.put(f"{BASE}/Inventory/1", json={"Quantity": "7", "active": "FALSE"})
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["quantity"] == 7
    assert data["is_active"] is False
    assert data["name"] == "bolt"

    assert client.put(f"{BASE}/Inventory/9", json={"name": "x"}).status_code == 404

    r = client.delete(f"{BASE}/Inventory/1")
    assert r.status_code == 200
    assert r.json()["message"] == "Data deleted successfully"
    assert client.delete(f"{BASE}/Inventory/1").status_code == 404
    assert client.get(f"{BASE}/Inventory/1").status_code == 404


def test_legacy_alias_is_deprecated(client):
    r = client.post("/api/DynamicCRUD/Inventory", json={"name": "bolt"})
    assert r.status_code == 201
    assert r.headers["location"] == "/api/DynamicCRUD/Inventory/1"
    assert r.headers["deprecation"] == "true"
    assert "/api/v1/dynamic" in r.headers["link"]

    r = client.get(f"{BASE}/Inventory/1")
    assert r.status_code == 200
    assert "deprecation" not in r.headers


@pytest.mark.parametrize("quantity", ["1_0", "١٢٣"])
def test_digit_separators_and_non_ascii_digits_rejected(client, quantity):
    r = client.post(f"{BASE}/Inventory", json={"name": "bolt", "quantity": quantity})
    assert r.status_code == 400
    assert r.json()["message"].startswith("Invalid value for property 'quantity'")
    assert client.get(f"{BASE}/Inventory").json()["totalData"] == 0
