import os

import pytest
from fastapi.testclient import TestClient

from app.api.main import create_app
from app.core.records.bootstrap import build_registry
from app.core.records.models import FieldDescriptor, FieldKind, RecordShape
from app.core.records.orchestrator import CrudOrchestrator
from app.core.records.registry import CollectionRegistry
from app.core.records.store import InMemoryRecordStore
from app.core.settings import Settings


@pytest.fixture(scope="session", autouse=True)
def _force_test_env():
    # Make runtime behave deterministically in tests
    os.environ.setdefault("DYNACRUD_ENV", "test")
    os.environ.setdefault("DYNACRUD_STORE", "memory")


@pytest.fixture()
def settings():
    return Settings(env="test")


@pytest.fixture()
def store():
    return InMemoryRecordStore()


@pytest.fixture()
def registry(settings, store):
    return build_registry(settings, store=store)


@pytest.fixture()
def orchestrator(registry):
    return CrudOrchestrator(registry)


@pytest.fixture()
def client(settings, registry):
    return TestClient(create_app(settings, registry=registry))


@pytest.fixture()
def widget_shape():
    return RecordShape(
        "Widget",
        [
            FieldDescriptor("id", FieldKind.INTEGER, primary_key=True),
            FieldDescriptor("name", FieldKind.STRING, required=True),
            FieldDescriptor("serial_no", FieldKind.STRING, column="serial"),
            FieldDescriptor("weight", FieldKind.FLOAT, nullable=True),
            FieldDescriptor("stock", FieldKind.INTEGER, width=16),
            FieldDescriptor("batch", FieldKind.INTEGER, width=8, signed=False, nullable=True),
            FieldDescriptor("price", FieldKind.DECIMAL, nullable=True),
            FieldDescriptor("active", FieldKind.BOOLEAN),
            FieldDescriptor("shipped_at", FieldKind.DATETIME, nullable=True),
            FieldDescriptor("color", FieldKind.ENUM, variants=("Red", "Green", "Blue")),
        ],
    )


@pytest.fixture()
def widget_registry(widget_shape, store):
    return CollectionRegistry.build([("Widgets", widget_shape)], store)


@pytest.fixture()
def widget_orchestrator(widget_registry):
    return CrudOrchestrator(widget_registry)
