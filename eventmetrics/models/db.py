"""Persistence / Supabase row models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from eventmetrics.models import MetricType

__all__ = [
    "MetricEventRow",
    "ProjectRow",
    "MemberRow",
]


class MetricEventRow(BaseModel):
    """Row in `metric_events` – append-only, never updated."""

    id: Optional[int] = Field(None, description="Bigserial primary key (db-generated)")
    project_id: str
    type: MetricType
    value: Optional[float] = None
    user_id: Optional[str] = None
    event_id: Optional[str] = Field(None, description="Caller idempotency key")
    occurred_at: datetime
    ingested_at: Optional[datetime] = Field(None, description="Server timestamp")


class ProjectRow(BaseModel):
    """Row in `projects` – owned by the team-management service, read-only here."""

    id: str
    team_id: str
    name: Optional[str] = None
    api_key: Optional[str] = None
    created_at: Optional[datetime] = None


class MemberRow(BaseModel):
    """Row in `members` – a user's role within a team."""

    team_id: str
    user_id: str
    role: str = "MEMBER"
