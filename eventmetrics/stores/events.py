"""Append-only event log stored in the `metric_events` table.

Rows are only ever inserted. Idempotency rests on the unique index over
``(project_id, event_id)`` (see ``supabase/migrations``); rows whose
``event_id`` is null never collide.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from supabase import AsyncClient

from eventmetrics.models import MetricType
from eventmetrics.utils.database import insert_ignore_duplicates, query_many

EVENTS_TABLE = "metric_events"
IDEMPOTENCY_KEY = "project_id,event_id"


class EventStore:
    """Explicit handle over the event table; one per request."""

    def __init__(self, supabase: AsyncClient) -> None:
        self._supabase = supabase

    async def insert_skip_duplicates(self, rows: list[dict[str, Any]]) -> int:
        """Write ``rows`` in one statement and return how many were new."""
        return await insert_ignore_duplicates(
            self._supabase,
            EVENTS_TABLE,
            rows,
            on_conflict=IDEMPOTENCY_KEY,
        )

    async def fetch_window(
        self,
        project_id: str,
        metric: MetricType,
        start: datetime,
        end: datetime,
        columns: str = "occurred_at",
    ) -> list[dict[str, Any]]:
        """Rows of one type with ``start <= occurred_at <= end`` (both inclusive)."""
        return await query_many(
            self._supabase,
            EVENTS_TABLE,
            match={
                "project_id": project_id,
                "type": metric.value,
                "occurred_at": [("gte", start.isoformat()), ("lte", end.isoformat())],
            },
            key="id",
            select_fields=f"id,{columns}",
        )
