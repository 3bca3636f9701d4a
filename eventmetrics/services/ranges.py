"""Resolve the optional ``from`` / ``to`` / ``interval`` analytics parameters.

Applied once per request, before any aggregation, identically for every
metric so all charts share the same axis.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pydantic

from eventmetrics.exceptions import ValidationError
from eventmetrics.models import Interval
from eventmetrics.models.events import parse_instant
from eventmetrics.settings import DEFAULT_RANGE_DAYS


@dataclass(frozen=True)
class AnalyticsRange:
    start: datetime
    end: datetime
    interval: Interval


def _parse_bound(raw: str, name: str, issues: list[dict[str, str]]) -> datetime | None:
    try:
        parsed = parse_instant(raw.strip())
    except pydantic.ValidationError:
        issues.append({"path": name, "message": "Expected a calendar date or ISO-8601 timestamp"})
        return None
    return parsed


def resolve_range(
    from_: str | None,
    to: str | None,
    interval: str | None,
    *,
    now: datetime | None = None,
) -> AnalyticsRange:
    """Defaults: ``to`` = now, ``from`` = ``to`` - 30 days, ``interval`` = day.

    Both bounds are inclusive instants; a calendar date means 00:00 UTC, so a
    date-only ``to`` takes in nothing later that day.
    """
    issues: list[dict[str, str]] = []

    grain = Interval.day
    if interval:
        try:
            grain = Interval(interval)
        except ValueError:
            issues.append({"path": "interval", "message": "Expected one of: day, week, month"})

    end = _parse_bound(to, "to", issues) if to else None
    start = _parse_bound(from_, "from", issues) if from_ else None

    if issues:
        raise ValidationError(issues)

    if end is None:
        end = now or datetime.now(timezone.utc)
    if start is None:
        start = end - timedelta(days=DEFAULT_RANGE_DAYS)

    if start > end:
        raise ValidationError([{"path": "from", "message": "from must not be after to"}])

    return AnalyticsRange(start=start, end=end, interval=grain)
