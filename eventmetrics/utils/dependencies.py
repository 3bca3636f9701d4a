"""FastAPI dependency providers for external clients and store handles."""

from __future__ import annotations

from typing import AsyncGenerator
import asyncio

from fastapi import Depends
from supabase import AsyncClient, acreate_client

from eventmetrics import SUPABASE_URL, SUPABASE_KEY
from eventmetrics.services.analytics import AnalyticsService
from eventmetrics.services.ingest import IngestionPipeline
from eventmetrics.stores.events import EventStore
from eventmetrics.stores.projects import ProjectRegistry


_cached_client: AsyncClient | None = None
_cached_loop: asyncio.AbstractEventLoop | None = None


async def _get_cached_client() -> AsyncClient:
    """Return a cached Supabase async client tied to the current event loop.

    In serverless environments each invocation may run on a fresh event loop
    even when the Python process is reused.  Re-using an `AsyncClient` that was
    created on a *different* loop will raise `RuntimeError('Event loop is
    closed')` when its underlying httpx connection attempts I/O.  We therefore
    cache **per-loop** rather than per-process.
    """

    global _cached_client, _cached_loop

    current_loop = asyncio.get_running_loop()

    if (
        _cached_client is None
        or _cached_loop is None
        or _cached_loop is not current_loop
        or _cached_loop.is_closed()
    ):
        _cached_client = await acreate_client(SUPABASE_URL, SUPABASE_KEY)  # type: ignore[arg-type]
        _cached_loop = current_loop

    return _cached_client


async def get_supabase_async() -> AsyncGenerator[AsyncClient, None]:
    """FastAPI dependency yielding the shared async Supabase client.

    Tests replace this dependency through ``app.dependency_overrides``.
    """
    client = await _get_cached_client()
    yield client


def get_event_store(supabase: AsyncClient = Depends(get_supabase_async)) -> EventStore:
    return EventStore(supabase)


def get_project_registry(supabase: AsyncClient = Depends(get_supabase_async)) -> ProjectRegistry:
    return ProjectRegistry(supabase)


def get_ingestion_pipeline(
    registry: ProjectRegistry = Depends(get_project_registry),
    store: EventStore = Depends(get_event_store),
) -> IngestionPipeline:
    return IngestionPipeline(registry, store)


def get_analytics_service(
    registry: ProjectRegistry = Depends(get_project_registry),
    store: EventStore = Depends(get_event_store),
) -> AnalyticsService:
    return AnalyticsService(registry, store)
