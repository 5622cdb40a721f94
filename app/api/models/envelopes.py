from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


class Envelope(BaseModel):
    status: bool
    message: str
    data: Union[Dict[str, Any], List[Dict[str, Any]]] = Field(default_factory=dict)
    totalData: int = 0


class PaginatedEnvelope(Envelope):
    totalCount: Optional[int] = None
    totalPages: Optional[int] = None
    currentPage: Optional[int] = None
    pageSize: Optional[int] = None


class FieldOut(BaseModel):
    name: str
    column: str
    kind: str
    nullable: bool
    required: bool
    writable: bool
    primary_key: bool
    width: Optional[int] = None
    signed: Optional[bool] = None
    variants: Optional[List[str]] = None


class CollectionOut(BaseModel):
    collection: str
    model: str
    primary_key: str
    fields: List[FieldOut] = Field(default_factory=list)


class CollectionListOut(BaseModel):
    collections: List[CollectionOut] = Field(default_factory=list)
