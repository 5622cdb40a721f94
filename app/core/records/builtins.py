from __future__ import annotations

from typing import List, Tuple

from .models import FieldDescriptor, FieldKind, Record, RecordShape, utc_now


def _balance(rec: Record):
    return rec["income"] - rec["expense"]


def financial_report_shape() -> RecordShape:
    return RecordShape(
        "FinancialReport",
        [
            FieldDescriptor("id", FieldKind.INTEGER, primary_key=True),
            FieldDescriptor("report_date", FieldKind.DATETIME, default_factory=utc_now),
            FieldDescriptor("title", FieldKind.STRING, required=True),
            FieldDescriptor("description", FieldKind.STRING, required=True),
            FieldDescriptor("income", FieldKind.DECIMAL, required=True),
            FieldDescriptor("expense", FieldKind.DECIMAL, required=True),
            FieldDescriptor("balance", FieldKind.DECIMAL, writable=False, derive=_balance),
        ],
    )


def daily_task_shape() -> RecordShape:
    return RecordShape(
        "DailyTask",
        [
            FieldDescriptor("id", FieldKind.INTEGER, primary_key=True),
            FieldDescriptor("title", FieldKind.STRING, required=True),
            FieldDescriptor("description", FieldKind.STRING),
            FieldDescriptor("due_date", FieldKind.DATETIME, required=True),
            FieldDescriptor("completed", FieldKind.BOOLEAN, required=True),
        ],
    )


def inventory_shape() -> RecordShape:
    return RecordShape(
        "Inventory",
        [
            FieldDescriptor("id", FieldKind.INTEGER, primary_key=True),
            FieldDescriptor("name", FieldKind.STRING),
            FieldDescriptor("description", FieldKind.STRING),
            FieldDescriptor("quantity", FieldKind.INTEGER),
            FieldDescriptor("price", FieldKind.DECIMAL),
            FieldDescriptor("category", FieldKind.STRING),
            FieldDescriptor("last_updated", FieldKind.DATETIME, default_factory=utc_now),
            FieldDescriptor("is_active", FieldKind.BOOLEAN, column="active", default=True),
        ],
    )


def builtin_collections() -> List[Tuple[str, RecordShape]]:
    # (collection name, shape); collection names are what URLs resolve against.
    return [
        ("FinancialReports", financial_report_shape()),
        ("DailyTasks", daily_task_shape()),
        ("Inventory", inventory_shape()),
    ]
