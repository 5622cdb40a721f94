from __future__ import annotations

from typing import List, Optional, Tuple

from .field_mapper import FieldMapper
from .models import FieldDescriptor, QueryPlan, Record, RecordShape, StoredRecord
from .store import RecordStore


class RecordAdapter:
    """Uniform capability set over one registered collection.

    Every record type gets the same adapter class; what differs is the
    RecordShape it is built with. Derived fields are recomputed on each
    write so the store can filter and order on them.
    """

    def __init__(self, collection: str, shape: RecordShape, store: RecordStore):
        self.collection = collection
        self.shape = shape
        self.store = store
        self.mapper = FieldMapper(shape)

    @property
    def model_name(self) -> str:
        return self.shape.name

    @property
    def key_field(self) -> str:
        return self.shape.primary_key.name

    def list_fields(self) -> List[FieldDescriptor]:
        return list(self.shape.fields)

    def new_record(self) -> Record:
        return self.shape.new_record()

    def get(self, record_id: int) -> Optional[StoredRecord]:
        return self.store.get(self.collection, record_id)

    def exists(self, record_id: int) -> bool:
        return self.store.exists(self.collection, record_id)

    def list(self, plan: QueryPlan) -> Tuple[List[StoredRecord], int]:
        return self.store.query(self.collection, plan)

    def create(self, values: Record) -> StoredRecord:
        return self.store.insert(self.collection, self.shape.materialize(values), key_field=self.key_field)

    def update(self, record_id: int, values: Record, *, version: int) -> StoredRecord:
        values = self.shape.materialize(values)
        values[self.key_field] = record_id
        return self.store.update(self.collection, record_id, values, expected_version=version)

    def delete(self, record_id: int, *, version: Optional[int] = None) -> None:
        self.store.delete(self.collection, record_id, expected_version=version)

    def render(self, row: StoredRecord) -> Record:
        return self.shape.materialize(row.values)

    def describe(self) -> dict:
        return {
            "collection": self.collection,
            "model": self.model_name,
            "primary_key": self.key_field,
            "fields": [fd.describe() for fd in self.list_fields()],
        }
