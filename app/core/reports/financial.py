"""
Financial report service.

Fixed-schema counterpart of the dynamic surface: it works against the
FinancialReports collection through the same adapter, but with a known
search/sort vocabulary and a CSV import/export format.
"""
from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from app.core.records.adapters import RecordAdapter
from app.core.records.coercion import coerce
from app.core.records.errors import CoercionError, ConcurrencyConflict
from app.core.records.models import FilterClause, OrderClause, PageSpec, QueryPlan, Record, SortDirection, utc_now
from app.core.records.query_planner import page_spec

log = logging.getLogger("dynacrud.reports")

CSV_HEADER = ["Id", "ReportDate", "Title", "Description", "Income", "Expense", "Balance"]

SEARCH_FIELDS = ("title", "description", "income", "expense", "balance")

SORT_FIELDS = {
    "title": "title",
    "description": "description",
    "income": "income",
    "expense": "expense",
    "balance": "balance",
    "reportdate": "report_date",
    "report_date": "report_date",
}

DEFAULT_ORDER = OrderClause(field="report_date", direction=SortDirection.DESC)


class ReportImportError(ValueError):
    pass


@dataclass
class ReportPage:
    total_records: int
    page: int
    page_size: int
    data: List[Record]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_records": self.total_records,
            "page": self.page,
            "page_size": self.page_size,
            "data": self.data,
        }


class FinancialReportService:
    def __init__(self, adapter: RecordAdapter):
        self.adapter = adapter

    def _order(self, sort_field: Optional[str], sort_order: Optional[str]) -> OrderClause:
        if not sort_field:
            return DEFAULT_ORDER
        name = SORT_FIELDS.get(sort_field.strip().lower())
        if name is None:
            return DEFAULT_ORDER
        return OrderClause(field=name, direction=SortDirection.parse(sort_order))

    def search(
        self,
        *,
        search: Optional[str] = None,
        sort_field: Optional[str] = None,
        sort_order: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> ReportPage:
        paging: PageSpec = page_spec(page, page_size)
        qp = QueryPlan(
            collection=self.adapter.collection,
            filter=FilterClause(fields=SEARCH_FIELDS, operand=search) if search else None,
            order=self._order(sort_field, sort_order),
            page=paging,
        )
        rows, total = self.adapter.list(qp)
        return ReportPage(
            total_records=total,
            page=paging.page,
            page_size=paging.page_size,
            data=[self.adapter.render(r) for r in rows],
        )

    def get(self, record_id: int) -> Optional[Record]:
        row = self.adapter.get(record_id)
        return self.adapter.render(row) if row is not None else None

    def create(self, *, title: str, description: str, income: Decimal, expense: Decimal) -> Record:
        rec = self.adapter.new_record()
        rec.update(
            {
                "report_date": utc_now(),
                "title": title,
                "description": description,
                "income": income,
                "expense": expense,
            }
        )
        return self.adapter.render(self.adapter.create(rec))

    def replace(self, record_id: int, *, title: str, description: str, income: Decimal, expense: Decimal) -> bool:
        """Full replacement of the writable fields; False when the report does not exist."""
        current = self.adapter.get(record_id)
        if current is None:
            return False
        rec = dict(current.values)
        rec.update({"title": title, "description": description, "income": income, "expense": expense})
        try:
            self.adapter.update(record_id, rec, version=current.version)
        except ConcurrencyConflict:
            if not self.adapter.exists(record_id):
                return False
            raise
        return True

    def delete(self, record_id: int) -> bool:
        current = self.adapter.get(record_id)
        if current is None:
            return False
        try:
            self.adapter.delete(record_id, version=current.version)
        except ConcurrencyConflict:
            if not self.adapter.exists(record_id):
                return False
            raise
        return True

    # ------------------------------------------------------------
    # CSV
    # ------------------------------------------------------------
    def export_csv(self) -> str:
        rows, _ = self.adapter.list(QueryPlan(collection=self.adapter.collection))
        buf = io.StringIO()
        w = csv.writer(buf, lineterminator="\n")
        w.writerow(CSV_HEADER)
        for row in rows:
            r = self.adapter.render(row)
            w.writerow(
                [
                    r["id"],
                    r["report_date"].strftime("%Y-%m-%d"),
                    r["title"],
                    r["description"],
                    r["income"],
                    r["expense"],
                    r["balance"],
                ]
            )
        return buf.getvalue()

    def import_csv(self, text: str) -> int:
        """Parse every row first, then insert; a malformed row imports nothing."""
        if not text or not text.strip():
            raise ReportImportError("No file uploaded")

        reader = csv.reader(io.StringIO(text))
        header = next(reader, None)
        if header is None or [h.strip() for h in header] != CSV_HEADER:
            raise ReportImportError("Invalid file format")

        shape = self.adapter.shape
        columns = ("report_date", "title", "description", "income", "expense")
        parsed: List[Record] = []
        for line_no, values in enumerate(reader, start=2):
            if not values or not any(v.strip() for v in values):
                continue
            if len(values) < 6:
                raise ReportImportError(f"Line {line_no}: expected {len(CSV_HEADER)} columns, got {len(values)}")
            rec = self.adapter.new_record()
            try:
                for offset, name in enumerate(columns, start=1):
                    rec[name] = coerce(values[offset], shape.field(name), CSV_HEADER[offset])
            except CoercionError as e:
                raise ReportImportError(f"Line {line_no}: {e}") from e
            parsed.append(rec)

        for rec in parsed:
            self.adapter.create(rec)
        log.info("%s", {"event": "reports_imported", "count": len(parsed)})
        return len(parsed)
