"""Ingestion payload models – one variant per event ``type``.

The batch endpoint receives a bare JSON array. Each item is validated
against exactly one variant selected by its ``type`` tag, so the required
field set is decided by a single discriminated lookup.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Annotated, Any, List, Literal, Optional, Union

import pydantic
from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter

from eventmetrics.exceptions import ValidationError
from eventmetrics.models import MetricType
from eventmetrics.settings import INGEST_MAX_BATCH

__all__ = [
    "RevenueEvent",
    "UserEvent",
    "SignupEvent",
    "IngestEvent",
    "is_calendar_date",
    "parse_instant",
    "parse_batch",
    "to_row",
]

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_UUID = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE)


def is_calendar_date(value: Any) -> bool:
    return isinstance(value, str) and bool(_DATE_ONLY.match(value.strip()))


def _coerce_instant(value: Any) -> Any:
    # Calendar dates mean 00:00 UTC of that day
    if is_calendar_date(value):
        return datetime.strptime(value.strip(), "%Y-%m-%d").replace(tzinfo=timezone.utc)
    return value


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _check_uuid(value: str) -> str:
    # The lower-cased hyphenated form is the stored idempotency key
    if not _UUID.fullmatch(value):
        raise ValueError("eventId must be a UUID (8-4-4-4-12 hex)")
    return value.lower()


Instant = Annotated[datetime, BeforeValidator(_coerce_instant), AfterValidator(_as_utc)]
EventId = Annotated[str, AfterValidator(_check_uuid)]
SubjectId = Annotated[str, Field(min_length=1)]
Amount = Annotated[float, Field(strict=True, allow_inf_nan=False)]

_instant_adapter: TypeAdapter[datetime] = TypeAdapter(Instant)


def parse_instant(value: Any) -> datetime:
    """Parse a calendar date or ISO-8601 timestamp into an aware UTC datetime.

    Raises ``pydantic.ValidationError`` on garbage input.
    """
    return _instant_adapter.validate_python(value)


_EVENT_CONFIG = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class RevenueEvent(BaseModel):
    """Money received; ``value`` is mandatory and strictly positive."""

    model_config = _EVENT_CONFIG

    type: Literal["REVENUE"]
    value: Annotated[float, Field(gt=0, strict=True, allow_inf_nan=False)]
    occurred_at: Instant = Field(alias="occurredAt")
    user_id: Optional[SubjectId] = Field(None, alias="userId")
    event_id: Optional[EventId] = Field(None, alias="eventId")


class UserEvent(BaseModel):
    """Activity and subscription lifecycle events; ``userId`` is mandatory."""

    model_config = _EVENT_CONFIG

    type: Literal["ACTIVE", "SUBSCRIPTION_START", "SUBSCRIPTION_CANCEL"]
    occurred_at: Instant = Field(alias="occurredAt")
    user_id: SubjectId = Field(alias="userId")
    value: Optional[Amount] = None
    event_id: Optional[EventId] = Field(None, alias="eventId")


class SignupEvent(BaseModel):
    model_config = _EVENT_CONFIG

    type: Literal["SIGNUP"]
    occurred_at: Instant = Field(alias="occurredAt")
    user_id: SubjectId = Field(alias="userId")
    value: Optional[Amount] = None
    event_id: Optional[EventId] = Field(None, alias="eventId")


IngestEvent = Annotated[Union[RevenueEvent, UserEvent, SignupEvent], Field(discriminator="type")]

_batch_adapter: TypeAdapter[List[IngestEvent]] = TypeAdapter(List[IngestEvent])

_TAGS = {t.value for t in MetricType}


def _issue_path(err: Any) -> str:
    loc = tuple(err["loc"])
    if err["type"] in {"union_tag_invalid", "union_tag_not_found"}:
        loc = loc + ("type",)
    # Tagged unions insert the tag into the location: (0, "REVENUE", "value")
    parts = [p for i, p in enumerate(loc) if not (i == 1 and p in _TAGS)]
    return ".".join(str(p) for p in parts) or "root"


def parse_batch(payload: Any) -> list[RevenueEvent | UserEvent | SignupEvent]:
    """Validate a whole batch or raise :class:`ValidationError` listing every issue.

    Nothing is returned for a partially valid batch.
    """
    if not isinstance(payload, list):
        raise ValidationError([{"path": "root", "message": "Expected an array of events"}])
    if not payload:
        raise ValidationError([{"path": "root", "message": "Batch must contain at least 1 event"}])
    if len(payload) > INGEST_MAX_BATCH:
        raise ValidationError(
            [{"path": "root", "message": f"Batch must contain at most {INGEST_MAX_BATCH} events"}]
        )

    try:
        return _batch_adapter.validate_python(payload)
    except pydantic.ValidationError as exc:
        issues = [{"path": _issue_path(err), "message": err["msg"]} for err in exc.errors()]
        raise ValidationError(issues) from None


def to_row(project_id: str, event: RevenueEvent | UserEvent | SignupEvent) -> dict[str, Any]:
    """Storage row for one event. Unset optionals become explicit nulls."""
    return {
        "project_id": project_id,
        "type": event.type,
        "value": event.value,
        "user_id": event.user_id,
        "event_id": event.event_id,
        "occurred_at": event.occurred_at.isoformat(),
    }
