from __future__ import annotations

import logging
from typing import Optional

from .errors import FieldResolutionMiss
from .field_mapper import FieldMapper
from .models import FilterClause, OrderClause, PageSpec, QueryPlan, RecordShape, SortDirection

log = logging.getLogger("dynacrud.planner")

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10


def page_spec(
    page: Optional[int],
    page_size: Optional[int],
    *,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: Optional[int] = None,
) -> PageSpec:
    """Clamp raw paging input; out-of-range values fall back to the defaults."""
    p = page if page is not None and page >= 1 else DEFAULT_PAGE
    s = page_size if page_size is not None and page_size >= 1 else default_page_size
    if max_page_size is not None and s > max_page_size:
        s = default_page_size
    return PageSpec(page=p, page_size=s)


def filter_clause(shape: RecordShape, substring: Optional[str]) -> Optional[FilterClause]:
    """OR of ``contains(substring)`` over every string field; None when there is nothing to filter on."""
    if not substring:
        return None
    fields = tuple(fd.name for fd in shape.string_fields)
    if not fields:
        return None
    return FilterClause(fields=fields, operand=substring)


def order_clause(
    shape: RecordShape,
    sort: Optional[str],
    direction: Optional[str] = None,
    *,
    mapper: Optional[FieldMapper] = None,
) -> Optional[OrderClause]:
    if not sort:
        return None
    try:
        fd = (mapper or FieldMapper(shape)).require(sort)
    except FieldResolutionMiss:
        log.info("%s", {"event": "sort_ignored", "shape": shape.name, "sort": sort})
        return None
    return OrderClause(field=fd.name, direction=SortDirection.parse(direction))


def plan(
    collection: str,
    shape: RecordShape,
    *,
    filter: Optional[str] = None,
    sort: Optional[str] = None,
    sort_direction: Optional[str] = None,
    page: Optional[PageSpec] = None,
    mapper: Optional[FieldMapper] = None,
) -> QueryPlan:
    """Build the query plan for one list request.

    Filter and sort are applied before paging; an unresolvable sort token
    leaves the plan unordered rather than failing.
    """
    return QueryPlan(
        collection=collection,
        filter=filter_clause(shape, filter),
        order=order_clause(shape, sort, sort_direction, mapper=mapper),
        page=page,
    )
