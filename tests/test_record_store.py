from datetime import datetime
from decimal import Decimal

import pytest

from app.core.records.errors import ConcurrencyConflict, PersistenceFailure
from app.core.records.models import PageSpec, QueryPlan
from app.core.records.store import InMemoryRecordStore, JsonFileRecordStore, build_store


@pytest.fixture(params=["memory", "json"])
def any_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryRecordStore()
    return JsonFileRecordStore(root=tmp_path / "data")


def test_insert_assigns_increasing_ids(any_store):
    a = any_store.insert("Things", {"id": 0, "name": "a"}, key_field="id")
    b = any_store.insert("Things", {"id": 0, "name": "b"}, key_field="id")
    assert (a.id, b.id) == (1, 2)
    assert a.version == 1
    assert any_store.get("Things", 2).values == {"id": 2, "name": "b"}
    assert any_store.get("Things", 3) is None
    assert any_store.get("Other", 1) is None


def test_update_bumps_version_and_rejects_stale(any_store):
    row = any_store.insert("Things", {"id": 0, "name": "a"}, key_field="id")
    updated = any_store.update("Things", row.id, {"id": 1, "name": "b"}, expected_version=1)
    assert updated.version == 2

    with pytest.raises(ConcurrencyConflict):
        any_store.update("Things", row.id, {"id": 1, "name": "c"}, expected_version=1)
    assert any_store.get("Things", 1).values["name"] == "b"


def test_delete_checks_version_and_presence(any_store):
    row = any_store.insert("Things", {"id": 0, "name": "a"}, key_field="id")
    with pytest.raises(ConcurrencyConflict):
        any_store.delete("Things", row.id, expected_version=7)
    any_store.delete("Things", row.id, expected_version=1)
    assert not any_store.exists("Things", row.id)
    with pytest.raises(ConcurrencyConflict):
        any_store.delete("Things", row.id)


def test_query_counts_before_paging(any_store):
    for i in range(5):
        any_store.insert("Things", {"id": 0, "name": f"n{i}"}, key_field="id")
    rows, total = any_store.query("Things", QueryPlan("Things", page=PageSpec(2, 2)))
    assert total == 5
    assert [r.id for r in rows] == [3, 4]


def test_returned_rows_are_copies():
    store = InMemoryRecordStore()
    row = store.insert("Things", {"id": 0, "name": "a"}, key_field="id")
    row.values["name"] = "mutated"
    assert store.get("Things", 1).values["name"] == "a"


def test_json_store_keeps_decimal_and_datetime(tmp_path):
    root = tmp_path / "data"
    store = JsonFileRecordStore(root=root)
    when = datetime(2024, 3, 1, 10, 30)
    store.insert("Reports", {"id": 0, "income": Decimal("1000.50"), "at": when}, key_field="id")

    reopened = JsonFileRecordStore(root=root)
    values = reopened.get("Reports", 1).values
    assert values["income"] == Decimal("1000.50")
    assert isinstance(values["income"], Decimal)
    assert values["at"] == when
    assert (root / "Reports.json").exists()


def test_json_store_corrupt_file_is_persistence_failure(tmp_path):
    root = tmp_path / "data"
    root.mkdir()
    (root / "Things.json").write_text("{not json", encoding="utf-8")
    store = JsonFileRecordStore(root=root)
    with pytest.raises(PersistenceFailure):
        store.get("Things", 1)


def test_build_store(tmp_path):
    assert isinstance(build_store("memory"), InMemoryRecordStore)
    js = build_store("JSON", data_dir=tmp_path)
    assert isinstance(js, JsonFileRecordStore)
    assert js.root == tmp_path
    with pytest.raises(ValueError):
        build_store("sqlite")
