"""Application-level configuration helpers (env → constants).

Only generic utilities that may be imported *anywhere* in the code-base
should live in this module.  Avoid importing heavy libraries to keep the
import cost near-zero even in cold-start environments (e.g. serverless).
"""

from __future__ import annotations

# Standard library
import os

__all__ = [
    "ALLOWED_ORIGINS",
    "INGEST_MAX_BATCH",
    "INGEST_MAX_BYTES",
    "DEFAULT_RANGE_DAYS",
    "DEFAULT_RATE_LIMIT",
    "INGEST_RATE_LIMIT",
]


def _collect_origins() -> list[str]:
    """Collect allowed CORS origins from the environment.

    Falls back to the local dashboard dev-server (localhost:3000) when no
    explicit env vars are set.
    """
    origins: list[str] = []
    for name in ("FRONTEND_ORIGIN", "DOCS_ORIGIN", "EXTRA_ORIGIN"):
        if (val := os.getenv(name)):
            origins.append(val)

    if not origins:
        origins.append("http://localhost:3000")
    return origins


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc


ALLOWED_ORIGINS: list[str] = _collect_origins()

# Ingestion batch bounds (inclusive) and raw body guard
INGEST_MAX_BATCH: int = 500
INGEST_MAX_BYTES: int = _int_env("INGEST_MAX_BYTES", 512 * 1024)

# Analytics range policy when the caller omits from/to
DEFAULT_RANGE_DAYS: int = 30

# SlowAPI limit strings
DEFAULT_RATE_LIMIT: str = os.getenv("DEFAULT_RATE_LIMIT", "600/minute")
INGEST_RATE_LIMIT: str = os.getenv("INGEST_RATE_LIMIT", "120/minute")
