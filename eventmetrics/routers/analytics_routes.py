"""Dashboard analytics – dense, chart-ready series per project.

Every endpoint needs a verified session and team membership on the project.
``from``/``to`` default to the last 30 days and ``interval`` to ``day``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from eventmetrics.models import AuthContext, ErrorResponse, SeriesResponse
from eventmetrics.services.analytics import AnalyticsService
from eventmetrics.services.ranges import AnalyticsRange, resolve_range
from eventmetrics.utils.auth import require_user
from eventmetrics.utils.dependencies import get_analytics_service

router = APIRouter(
    prefix="/v1/analytics/{project_id}",
    tags=["analytics"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid from/to/interval, or from after to"},
        401: {"model": ErrorResponse, "description": "Missing or invalid session"},
        403: {"model": ErrorResponse, "description": "Not a member of the project's team"},
        404: {"model": ErrorResponse, "description": "Project not found"},
    },
)


def analytics_range(
    from_: str | None = Query(None, alias="from", description="Start date (ISO 8601 or YYYY-MM-DD)", examples=["2025-10-01"]),
    to: str | None = Query(None, description="End date (ISO 8601 or YYYY-MM-DD)", examples=["2025-10-18"]),
    interval: str | None = Query(None, description="day | week | month (default day)"),
) -> AnalyticsRange:
    return resolve_range(from_, to, interval)


@router.get("/mrr", response_model=SeriesResponse)
async def get_mrr(
    project_id: str,
    auth: AuthContext = Depends(require_user),
    window: AnalyticsRange = Depends(analytics_range),
    svc: AnalyticsService = Depends(get_analytics_service),
):
    """Revenue summed per bucket."""
    return await svc.mrr(project_id, auth.user_id, window)


@router.get("/active-users", response_model=SeriesResponse)
async def get_active_users(
    project_id: str,
    auth: AuthContext = Depends(require_user),
    window: AnalyticsRange = Depends(analytics_range),
    svc: AnalyticsService = Depends(get_analytics_service),
):
    """Distinct active users per bucket."""
    return await svc.active_users(project_id, auth.user_id, window)


@router.get("/churn", response_model=SeriesResponse)
async def get_churn(
    project_id: str,
    auth: AuthContext = Depends(require_user),
    window: AnalyticsRange = Depends(analytics_range),
    svc: AnalyticsService = Depends(get_analytics_service),
):
    """Churn rate (cancels / starts * 100) per bucket."""
    return await svc.churn(project_id, auth.user_id, window)
