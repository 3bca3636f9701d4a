"""One grouped aggregation over a slice of the event log."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from eventmetrics.models import Interval, MetricType, Reducer
from eventmetrics.models.events import parse_instant
from eventmetrics.services.buckets import floor_to_interval
from eventmetrics.stores.events import EventStore

_COLUMNS = {
    Reducer.sum_value: "occurred_at,value",
    Reducer.count_rows: "occurred_at",
    Reducer.count_distinct_users: "occurred_at,user_id",
}


@dataclass(frozen=True)
class BucketValue:
    bucket_start: datetime
    value: float


def _reduce(rows: list[dict[str, Any]], reducer: Reducer) -> float:
    if reducer is Reducer.sum_value:
        return sum(float(r["value"]) for r in rows if r.get("value") is not None)
    if reducer is Reducer.count_rows:
        return len(rows)
    # COUNT(DISTINCT user_id) ignores nulls
    return len({r["user_id"] for r in rows if r.get("user_id") is not None})


async def aggregate(
    store: EventStore,
    project_id: str,
    metric: MetricType,
    start: datetime,
    end: datetime,
    interval: Interval,
    reducer: Reducer,
) -> list[BucketValue]:
    """Sparse per-bucket aggregate, ordered by bucket start.

    Only buckets holding at least one matching row are returned; filling
    the gaps is :func:`eventmetrics.services.buckets.densify`'s job.
    """
    rows = await store.fetch_window(project_id, metric, start, end, columns=_COLUMNS[reducer])

    groups: dict[datetime, list[dict[str, Any]]] = defaultdict(list)
    for row in rows:
        occurred_at = parse_instant(row["occurred_at"])
        groups[floor_to_interval(occurred_at, interval)].append(row)

    return [BucketValue(bucket, _reduce(groups[bucket], reducer)) for bucket in sorted(groups)]
