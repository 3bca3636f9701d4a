#!/usr/bin/env python3
"""Generate a demo event history for one project and ingest it.

Scenario: a fresh dashboard needs believable charts.  The script simulates a
user base over the last ``--days`` days – daily activity, monthly
subscriptions billed on a fixed day of the month, occasional cancellations
and signups – and pushes it through the regular ingestion pipeline in
500-event batches.

Usage::

    # dry-run (no writes, just prints what would be sent)
    python scripts/seed_events.py --api-key proj_xxx --dry-run

    # real run
    python scripts/seed_events.py --api-key proj_xxx --days 90 --users 120

Requirements:
    • `SUPABASE_URL`, `SUPABASE_KEY` env vars for service-role access.
    • An existing project whose API key is passed via ``--api-key``.

Every event carries a deterministic ``eventId`` derived from ``--seed``, so
re-running with the same arguments inserts nothing new.
"""

from __future__ import annotations

import argparse
import asyncio
import pathlib
import random
import sys
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

# Ensure project root is on PYTHONPATH so `import eventmetrics.*` works when the
# script is executed directly (e.g. `python scripts/seed_events.py`).
PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from eventmetrics.settings import INGEST_MAX_BATCH  # noqa: E402

PLAN_PRICES = (8, 12, 29, 49)
SUBSCRIBER_SHARE = 0.35
CANCEL_PROBABILITY = 0.12
SIGNUP_SHARE = 0.15


def _event_id(rng: random.Random) -> str:
    return str(uuid.UUID(int=rng.getrandbits(128), version=4))


def generate_events(
    days: int,
    users: int,
    *,
    now: datetime | None = None,
    seed: int = 42,
) -> list[dict[str, Any]]:
    """Return ingest-shaped event dicts covering ``days`` days up to ``now``."""
    rng = random.Random(seed)
    now = now or datetime.now(timezone.utc)
    first_day = (now - timedelta(days=days - 1)).replace(hour=0, minute=0, second=0, microsecond=0)
    user_ids = [f"demo_user_{i:04d}" for i in range(users)]

    subscribers: dict[str, dict[str, Any]] = {}
    for user_id in rng.sample(user_ids, int(users * SUBSCRIBER_SHARE)):
        start = first_day + timedelta(days=rng.randint(0, max(0, int(days * 0.7))))
        cancel = None
        if rng.random() < CANCEL_PROBABILITY:
            cancel = first_day + timedelta(days=rng.randint(int(days * 0.1), days - 1))
        subscribers[user_id] = {
            "start": start,
            "cancel": cancel,
            "price": rng.choice(PLAN_PRICES),
            "billing_day": rng.randint(1, 28),
        }

    events: list[dict[str, Any]] = []

    def emit(kind: str, day: datetime, user_id: str, value: float | None = None) -> None:
        event: dict[str, Any] = {
            "type": kind,
            "occurredAt": day.isoformat(),
            "userId": user_id,
            "eventId": _event_id(rng),
        }
        if value is not None:
            event["value"] = value
        events.append(event)

    for offset in range(days):
        day = first_day + timedelta(days=offset)
        for user_id in user_ids:
            active_probability = 0.7 if user_id in subscribers else 0.12
            if rng.random() < active_probability:
                emit("ACTIVE", day, user_id)

        for user_id, sub in subscribers.items():
            if sub["start"] > day or (sub["cancel"] is not None and sub["cancel"] <= day):
                if sub["cancel"] is not None and sub["cancel"].date() == day.date() and sub["start"] <= day:
                    emit("SUBSCRIPTION_CANCEL", day, user_id)
                continue
            if sub["start"].date() == day.date():
                emit("SUBSCRIPTION_START", day, user_id)
            if day.day == sub["billing_day"]:
                emit("REVENUE", day, user_id, float(sub["price"]))

    for user_id in user_ids[: int(users * SIGNUP_SHARE)]:
        emit("SIGNUP", first_day + timedelta(days=rng.randint(0, days - 1)), user_id)

    return events


def chunked(items: list[Any], size: int = INGEST_MAX_BATCH) -> list[list[Any]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


async def _seed(api_key: str, days: int, users: int, seed: int, dry_run: bool) -> None:
    events = generate_events(days, users, seed=seed)
    batches = chunked(events)
    print(f"Prepared {len(events)} events in {len(batches)} batches")
    if dry_run or not batches:
        return

    from eventmetrics.services.ingest import IngestionPipeline  # noqa: WPS433
    from eventmetrics.stores import EventStore, ProjectRegistry  # noqa: WPS433
    from eventmetrics.utils.dependencies import get_supabase_async  # noqa: WPS433

    async for supabase in get_supabase_async():
        pipeline = IngestionPipeline(ProjectRegistry(supabase), EventStore(supabase))
        inserted = 0
        for number, batch in enumerate(batches, start=1):
            result = await pipeline.ingest(api_key, batch)
            inserted += result.inserted
            print(f"  batch {number}/{len(batches)}: received={result.received} inserted={result.inserted}")
        print(f"Done – {inserted} new rows for project {result.project_id}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed demo metric events for one project")
    parser.add_argument("--api-key", required=True, help="Project API key")
    parser.add_argument("--days", type=int, default=90)
    parser.add_argument("--users", type=int, default=120)
    parser.add_argument("--seed", type=int, default=42, help="RNG seed (same seed → same eventIds)")
    parser.add_argument("--dry-run", action="store_true")
    args = parser.parse_args()
    if args.days < 1 or args.users < 1:
        parser.error("--days and --users must be positive")
    asyncio.run(_seed(args.api_key, args.days, args.users, args.seed, args.dry_run))


if __name__ == "__main__":
    main()
