"""Thin helpers over the Supabase (PostgREST) query builder.

Every driver failure is logged and re-raised as :class:`StorageError`; the
caller never sees the underlying error text.
"""

from __future__ import annotations

from typing import Any, Optional

from supabase import AsyncClient

from eventmetrics.exceptions import StorageError
from .logger import logger

# PostgREST caps a single response at `max-rows` (1000 on Supabase)
PAGE_SIZE = 1000

_OPERATORS = {"in", "is", "gt", "lt", "gte", "lte", "like", "ilike", "neq", "eq"}


def _apply_filter(query, key: str, operator: str, value: Any):
    if operator not in _OPERATORS:
        raise ValueError(f"Unsupported filter operator: {operator}")
    if operator == "in":
        return query.in_(key, value)
    if operator == "is":
        return query.is_(key, value)
    return getattr(query, operator)(key, value)


def _apply_filters(query, filters: dict | None):
    """Apply ``{column: value | (op, value) | [(op, value), ...]}`` filters.

    A list of tuples lets one column carry several bounds (e.g. a range).
    """
    for key, condition in (filters or {}).items():
        if isinstance(condition, tuple):
            query = _apply_filter(query, key, *condition)
        elif isinstance(condition, list):
            for operator, value in condition:
                query = _apply_filter(query, key, operator, value)
        else:  # Default to equality check
            query = query.eq(key, condition)
    return query


async def query_data(
    supabase: AsyncClient,
    table_name: str,
    filters: dict | None = None,
    order_by: tuple | None = None,
    select_fields: str = "*",
    limit: Optional[int] = None,
):
    """
    Query a Supabase table with dynamic filters, ordering and paging.

    :param table_name: Name of the table to query.
    :param filters: Dictionary where keys are column names and values are filter conditions.
                     Use a tuple (operator, value) for non-equality filters, or a list of such
                     tuples for several conditions on one column.
                     Supported operators: 'eq', 'in', 'gt', 'lt', 'gte', 'lte', 'like', 'ilike', 'neq', 'is'.
    :param order_by: Tuple (column_name, desc) where desc=True means descending order.
    :param select_fields: Fields to select (default is "*").
    :param limit: Optional page size.
    :return: Query result from Supabase.
    """
    query = supabase.table(table_name).select(select_fields)
    query = _apply_filters(query, filters)

    if order_by:
        column, desc = order_by
        query = query.order(column, desc=desc)

    if limit:
        query = query.limit(limit)

    try:
        return await query.execute()
    except Exception as exc:
        logger.error("storage.error", extra={"table": table_name, "operation": "select", "error": str(exc)})
        raise StorageError() from exc


async def query_one(
    supabase: AsyncClient,
    table_name: str,
    match: dict | None = None,
    order_by: tuple | None = None,
    select_fields: str = "*",
):
    """Return the first (or *None*) row that matches the filters."""
    resp = await query_data(
        supabase,
        table_name,
        filters=match or {},
        order_by=order_by,
        select_fields=select_fields,
        limit=1,
    )
    rows = getattr(resp, "data", None) or []
    return rows[0] if rows else None


async def query_many(
    supabase: AsyncClient,
    table_name: str,
    match: dict | None = None,
    key: str = "id",
    select_fields: str = "*",
    page_size: int = PAGE_SIZE,
) -> list[dict]:
    """Return *all* rows that match the filters, reading page by page.

    Pages are keyed on the unique, increasing column ``key`` (``key > last seen``)
    rather than on offsets, so rows committed while paging never shift a page
    and no row is read twice. ``select_fields`` must include ``key``.
    """
    rows: list[dict] = []
    filters = dict(match or {})
    while True:
        resp = await query_data(
            supabase,
            table_name,
            filters=filters,
            order_by=(key, False),
            select_fields=select_fields,
            limit=page_size,
        )
        page = getattr(resp, "data", None) or []
        rows.extend(page)
        if len(page) < page_size:
            return rows
        filters[key] = ("gt", page[-1][key])


async def insert_ignore_duplicates(
    supabase: AsyncClient,
    table_name: str,
    rows: list[dict],
    on_conflict: str,
) -> int:
    """Bulk insert; rows hitting the ``on_conflict`` unique key are skipped.

    Returns the number of rows actually written. The whole list goes out as one
    statement, so concurrent callers racing on the same keys converge on one row
    per key.
    """
    if not rows:
        return 0
    try:
        resp = await (
            supabase.table(table_name)
            .upsert(rows, on_conflict=on_conflict, ignore_duplicates=True)
            .execute()
        )
    except Exception as exc:
        logger.error("storage.error", extra={"table": table_name, "operation": "insert", "error": str(exc)})
        raise StorageError() from exc
    # Skipped duplicates are absent from the returned representation
    return len(getattr(resp, "data", None) or [])
