"""Grain-aligned bucketing and gap filling.

All instants are UTC. Bucket starts are:

* ``day``   – midnight of the day
* ``week``  – Monday 00:00 of the ISO week
* ``month`` – the 1st of the month, 00:00

Every metric is densified by :func:`densify`, so series computed for the same
``(start, end, interval)`` share identical labels.
"""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable

from eventmetrics.models import Interval, SeriesResponse


def floor_to_interval(value: datetime, interval: Interval) -> datetime:
    value = value.astimezone(timezone.utc)
    day = value.replace(hour=0, minute=0, second=0, microsecond=0)
    if interval is Interval.day:
        return day
    if interval is Interval.week:
        return day - timedelta(days=day.weekday())
    return day.replace(day=1)


def add_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return value.replace(year=year, month=month, day=min(value.day, last_day))


def add_interval(value: datetime, interval: Interval) -> datetime:
    if interval is Interval.day:
        return value + timedelta(days=1)
    if interval is Interval.week:
        return value + timedelta(days=7)
    return add_months(value, 1)


def to_label(value: datetime) -> str:
    """ISO calendar date of a bucket start – the join key between series."""
    return value.astimezone(timezone.utc).date().isoformat()


def bucket_starts(start: datetime, end: datetime, interval: Interval) -> list[datetime]:
    """Every bucket start from ``floor(start)`` to ``floor(end)`` inclusive."""
    cursor = floor_to_interval(start, interval)
    last = floor_to_interval(end, interval)
    starts: list[datetime] = []
    while cursor <= last:
        starts.append(cursor)
        cursor = add_interval(cursor, interval)
    return starts


def densify(
    rows: Iterable[Any],
    start: datetime,
    end: datetime,
    interval: Interval,
    empty_value: float = 0,
    extractor: Callable[[Any], float] | None = None,
) -> SeriesResponse:
    """Spread sparse aggregate rows over the full, gap-free bucket axis.

    ``rows`` need a ``bucket_start`` attribute; ``extractor`` picks the number
    to plot (defaults to ``row.value``). Buckets with no row get ``empty_value``.
    """
    pick = extractor or (lambda row: row.value)
    by_label = {to_label(row.bucket_start): pick(row) for row in rows}

    labels: list[str] = []
    series: list[float] = []
    for bucket in bucket_starts(start, end, interval):
        label = to_label(bucket)
        labels.append(label)
        series.append(by_label.get(label, empty_value))
    return SeriesResponse(labels=labels, series=series)
