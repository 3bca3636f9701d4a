from datetime import datetime, timezone

from eventmetrics.models.events import parse_batch
from scripts.seed_events import chunked, generate_events

NOW = datetime(2025, 10, 18, 12, tzinfo=timezone.utc)


def test_generated_events_pass_ingest_validation():
    events = generate_events(30, 40, now=NOW)
    for batch in chunked(events):
        assert 1 <= len(batch) <= 500
        parse_batch(batch)


def test_generation_is_deterministic_per_seed():
    first = generate_events(20, 10, now=NOW, seed=7)
    again = generate_events(20, 10, now=NOW, seed=7)
    other = generate_events(20, 10, now=NOW, seed=8)
    assert first == again
    assert [e["eventId"] for e in first] != [e["eventId"] for e in other]


def test_event_ids_are_unique_and_window_is_respected():
    events = generate_events(15, 25, now=NOW)
    ids = [e["eventId"] for e in events]
    assert len(ids) == len(set(ids))
    dates = {e["occurredAt"][:10] for e in events}
    assert min(dates) == "2025-10-04"
    assert max(dates) <= "2025-10-18"


def test_revenue_follows_subscriptions():
    events = generate_events(60, 50, now=NOW)
    starters = {e["userId"] for e in events if e["type"] == "SUBSCRIPTION_START"}
    payers = {e["userId"] for e in events if e["type"] == "REVENUE"}
    assert payers <= starters
    assert all(e["value"] > 0 for e in events if e["type"] == "REVENUE")


def test_chunked_splits_at_batch_limit():
    assert [len(c) for c in chunked(list(range(1201)))] == [500, 500, 201]
