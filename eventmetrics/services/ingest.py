"""Idempotent batch ingestion of typed events."""

from __future__ import annotations

from typing import Any

from eventmetrics.exceptions import AuthenticationError
from eventmetrics.models import IngestResponse
from eventmetrics.models.events import parse_batch, to_row
from eventmetrics.stores.events import EventStore
from eventmetrics.stores.projects import ProjectRegistry
from eventmetrics.utils.logger import logger


class IngestionPipeline:
    """Validate a batch, resolve its project from the API key, store it once.

    Re-submitting the same batch is safe: items carrying an already stored
    ``eventId`` are skipped by the store and only lower ``inserted``.
    """

    def __init__(self, registry: ProjectRegistry, store: EventStore) -> None:
        self.registry = registry
        self.store = store

    async def ingest(self, api_key: str, payload: Any) -> IngestResponse:
        # Whole batch is validated before anything is written
        events = parse_batch(payload)

        project = await self.registry.by_api_key(api_key)
        if project is None:
            logger.info("ingest.rejected", extra={"reason": "invalid_api_key"})
            raise AuthenticationError("Invalid API key")

        rows = [to_row(project.id, event) for event in events]
        inserted = await self.store.insert_skip_duplicates(rows)

        logger.info(
            "ingest.accepted",
            extra={
                "project_id": project.id,
                "received": len(events),
                "inserted": inserted,
                "duplicates": len(events) - inserted,
            },
        )
        return IngestResponse(project_id=project.id, received=len(events), inserted=inserted)
