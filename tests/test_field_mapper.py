import pytest

from app.core.records.builtins import financial_report_shape, inventory_shape
from app.core.records.field_mapper import FieldMapper, candidate_keys, resolve_field


def test_candidate_keys_order_and_dedup():
    assert candidate_keys("Report_Date") == ["report_date", "reportdate"]
    assert candidate_keys("Report Date") == ["report date", "reportdate"]
    assert candidate_keys("title") == ["title"]


@pytest.mark.parametrize(
    "key",
    ["report_date", "REPORT_DATE", "reportDate", "ReportDate", "Report Date", "report__date"],
)
def test_report_date_spellings(key):
    fd = resolve_field(financial_report_shape(), key)
    assert fd is not None
    assert fd.name == "report_date"


def test_column_alias_matches():
    m = FieldMapper(inventory_shape())
    assert m.resolve("active").name == "is_active"
    assert m.resolve("Active").name == "is_active"
    assert m.resolve("is_active").name == "is_active"
    assert m.resolve("IsActive").name == "is_active"


def test_unknown_key_unresolved():
    m = FieldMapper(financial_report_shape())
    assert m.resolve("profit") is None
    assert m.resolve("") is None


def test_find_key_returns_first_matching_payload_key():
    shape = financial_report_shape()
    m = FieldMapper(shape)
    fd = shape.field("income")
    assert m.find_key(fd, ["Title", "INCOME", "income"]) == "INCOME"
    assert m.find_key(fd, ["Title"]) is None


def test_widget_alias_and_underscore(widget_shape):
    m = FieldMapper(widget_shape)
    assert m.resolve("serial").name == "serial_no"
    assert m.resolve("SerialNo").name == "serial_no"
    assert m.resolve("serial no").name == "serial_no"
    assert m.resolve("shipped_at").name == "shipped_at"


def test_require_raises_miss():
    from app.core.records.errors import FieldResolutionMiss

    m = FieldMapper(financial_report_shape())
    assert m.require("Balance").name == "balance"
    with pytest.raises(FieldResolutionMiss) as ei:
        m.require("profit")
    assert ei.value.key == "profit"
    assert ei.value.shape_name == "FinancialReport"
