"""Analytics queries: MRR, active users and churn for one project.

Each query passes the access gate first, then recomputes its series from
the raw event log. Nothing is cached between calls.
"""

from __future__ import annotations

from eventmetrics.models import MetricType, Reducer, SeriesResponse
from eventmetrics.services.access import ensure_access
from eventmetrics.services.aggregator import aggregate
from eventmetrics.services.buckets import densify
from eventmetrics.services.churn import churn as churn_series
from eventmetrics.services.ranges import AnalyticsRange
from eventmetrics.stores.events import EventStore
from eventmetrics.stores.projects import ProjectRegistry
from eventmetrics.utils.logger import logger


class AnalyticsService:
    def __init__(self, registry: ProjectRegistry, store: EventStore) -> None:
        self.registry = registry
        self.store = store

    async def _single(
        self,
        name: str,
        project_id: str,
        user_id: str,
        window: AnalyticsRange,
        metric: MetricType,
        reducer: Reducer,
    ) -> SeriesResponse:
        await ensure_access(self.registry, project_id, user_id)
        rows = await aggregate(
            self.store, project_id, metric, window.start, window.end, window.interval, reducer
        )
        result = densify(rows, window.start, window.end, window.interval)
        self._log(name, project_id, window, result)
        return result

    async def mrr(self, project_id: str, user_id: str, window: AnalyticsRange) -> SeriesResponse:
        """Summed REVENUE values per bucket (a monthly-recurring-revenue proxy)."""
        return await self._single("mrr", project_id, user_id, window, MetricType.REVENUE, Reducer.sum_value)

    async def active_users(self, project_id: str, user_id: str, window: AnalyticsRange) -> SeriesResponse:
        """Distinct users with an ACTIVE event per bucket."""
        return await self._single(
            "active_users", project_id, user_id, window, MetricType.ACTIVE, Reducer.count_distinct_users
        )

    async def churn(self, project_id: str, user_id: str, window: AnalyticsRange) -> SeriesResponse:
        """Cancellations per start, in percent, per bucket."""
        await ensure_access(self.registry, project_id, user_id)
        result = await churn_series(self.store, project_id, window.start, window.end, window.interval)
        self._log("churn", project_id, window, result)
        return result

    @staticmethod
    def _log(name: str, project_id: str, window: AnalyticsRange, result: SeriesResponse) -> None:
        logger.info(
            "analytics.query",
            extra={
                "metric": name,
                "project_id": project_id,
                "interval": window.interval.value,
                "buckets": len(result.labels),
            },
        )
