"""Supabase-backed collaborators: the event log and the project registry."""

from eventmetrics.stores.events import EventStore
from eventmetrics.stores.projects import ProjectRegistry

__all__ = ["EventStore", "ProjectRegistry"]
