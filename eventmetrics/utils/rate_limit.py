"""Shared SlowAPI limiter (IP-based by default, API-key based for ingest)."""

from __future__ import annotations

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from eventmetrics.settings import DEFAULT_RATE_LIMIT


def api_key_or_address(request: Request) -> str:
    """Bucket ingest traffic per project key; fall back to the client address."""
    api_key = request.headers.get("x-api-key")
    if api_key:
        return f"key:{api_key}"
    return get_remote_address(request)


limiter = Limiter(key_func=get_remote_address, default_limits=[DEFAULT_RATE_LIMIT])
