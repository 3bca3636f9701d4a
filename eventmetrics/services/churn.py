"""Churn rate: cancellations over starts, per bucket, as a percentage."""

from __future__ import annotations

from datetime import datetime

from eventmetrics.models import Interval, MetricType, Reducer, SeriesResponse
from eventmetrics.services.aggregator import aggregate
from eventmetrics.services.buckets import densify
from eventmetrics.stores.events import EventStore


def churn_rate(cancels: float, starts: float) -> float:
    # No starts in the bucket means no churn signal, not an error
    if starts == 0:
        return 0
    return round((cancels / starts) * 100, 2)


def combine(cancels: SeriesResponse, starts: SeriesResponse) -> SeriesResponse:
    """Zip two dense count series that share one bucket axis into a rate series."""
    if cancels.labels != starts.labels:
        raise ValueError("churn inputs must share identical bucket labels")
    return SeriesResponse(
        labels=list(cancels.labels),
        series=[churn_rate(c, s) for c, s in zip(cancels.series, starts.series)],
    )


async def churn(
    store: EventStore,
    project_id: str,
    start: datetime,
    end: datetime,
    interval: Interval,
) -> SeriesResponse:
    cancel_rows = await aggregate(
        store, project_id, MetricType.SUBSCRIPTION_CANCEL, start, end, interval, Reducer.count_rows
    )
    start_rows = await aggregate(
        store, project_id, MetricType.SUBSCRIPTION_START, start, end, interval, Reducer.count_rows
    )
    return combine(
        densify(cancel_rows, start, end, interval),
        densify(start_rows, start, end, interval),
    )
