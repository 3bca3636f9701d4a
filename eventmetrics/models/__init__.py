"""Unified models namespace – request/response bodies, enums and auth context.

Ingestion payload variants live in :mod:`eventmetrics.models.events`; storage
row shapes in :mod:`eventmetrics.models.db`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Union

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Authentication Models
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AuthContext:
    """Verified caller identity taken from a Supabase session token."""

    user_id: str
    email: str | None = None
    role: str | None = None


# ---------------------------------------------------------------------------
# Enums – shareable across request / DB models
# ---------------------------------------------------------------------------


class MetricType(str, Enum):
    REVENUE = "REVENUE"
    ACTIVE = "ACTIVE"
    SUBSCRIPTION_START = "SUBSCRIPTION_START"
    SUBSCRIPTION_CANCEL = "SUBSCRIPTION_CANCEL"
    SIGNUP = "SIGNUP"


class Interval(str, Enum):
    """Bucket grain for analytics series."""

    day = "day"
    week = "week"
    month = "month"


class Reducer(str, Enum):
    """Per-bucket aggregation applied by the bucket aggregator."""

    sum_value = "sum"
    count_rows = "count"
    count_distinct_users = "count_distinct_users"


# ---------------------------------------------------------------------------
# Request / response bodies
# ---------------------------------------------------------------------------


class IngestResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    project_id: str = Field(..., alias="projectId", examples=["c0ffee00-0000-4000-8000-000000000001"])
    received: int = Field(..., description="Events in the batch, before de-duplication")
    inserted: int = Field(..., description="Rows actually stored; duplicates are skipped")


class SeriesResponse(BaseModel):
    """Dense chart series: one label per bucket, same length as ``series``."""

    labels: List[str] = Field(..., examples=[["2025-10-01", "2025-10-02"]])
    series: List[Union[int, float]] = Field(..., examples=[[100, 200]])


class ValidationIssue(BaseModel):
    path: str = Field(..., examples=["0.value"])
    message: str


class ErrorResponse(BaseModel):
    error: str
    message: str
    issues: List[ValidationIssue] | None = None


class HealthResponse(BaseModel):
    status: str = "ok"
