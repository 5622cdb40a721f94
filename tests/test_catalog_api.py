def test_list_collections(client):
    r = client.get("/api/v1/collections")
    assert r.status_code == 200
    cols = r.json()["collections"]
    assert [c["collection"] for c in cols] == ["FinancialReports", "DailyTasks", "Inventory"]


def test_describe_collection_by_model_name(client):
    r = client.get("/api/v1/collections/financialreport")
    assert r.status_code == 200
    body = r.json()
    assert body["collection"] == "FinancialReports"
    assert body["model"] == "FinancialReport"
    assert body["primary_key"] == "id"
    fields = {f["name"]: f for f in body["fields"]}
    assert fields["balance"]["writable"] is False
    assert fields["id"]["writable"] is False
    assert fields["income"]["kind"] == "decimal"
    assert fields["title"]["required"] is True


def test_describe_alias_column(client):
    fields = {f["name"]: f for f in client.get("/api/v1/collections/Inventory").json()["fields"]}
    assert fields["is_active"]["column"] == "active"
    assert fields["quantity"]["width"] == 32


def test_unknown_collection(client):
    r = client.get("/api/v1/collections/Employees")
    assert r.status_code == 404
    body = r.json()
    assert body["status"] is False
    assert len(body["data"]["available"]) == 3
