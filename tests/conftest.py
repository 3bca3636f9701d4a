"""Pytest fixtures for the ingest & analytics API.

Supabase is replaced by the in-memory :class:`SupabaseStub` through FastAPI
dependency overrides, so the request pipeline runs end-to-end without
network or database round-trips.
"""

from __future__ import annotations

import os
import sys
import time
from pathlib import Path

import pytest
from jose import jwt as jose_jwt
from starlette.testclient import TestClient

# ---------------------------------------------------------------------------
# Runtime env for the application
# ---------------------------------------------------------------------------

os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test_key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-entropy")
os.environ.setdefault("FRONTEND_ORIGIN", "https://dashboard.test")

# Ensure project root on PYTHONPATH so `import eventmetrics` works when pytest is run
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from eventmetrics.main import create_app  # noqa: E402
from eventmetrics.stores import EventStore, ProjectRegistry  # noqa: E402
from eventmetrics.utils.dependencies import get_supabase_async  # noqa: E402
from eventmetrics.utils.rate_limit import limiter  # noqa: E402
from tests.supabase_stub import SupabaseStub  # noqa: E402

JWT_SECRET = os.environ["SUPABASE_JWT_SECRET"]

PROJECT_ID = "proj-1"
OTHER_PROJECT_ID = "proj-2"
API_KEY = "proj_0123456789abcdef"
MEMBER = "user-member"
OUTSIDER = "user-outsider"


def _seed_tables() -> dict:
    return {
        "projects": [
            {"id": PROJECT_ID, "team_id": "team-1", "name": "Web App", "api_key": API_KEY},
            {"id": OTHER_PROJECT_ID, "team_id": "team-2", "name": "Other", "api_key": "proj_other"},
        ],
        "members": [
            {"team_id": "team-1", "user_id": MEMBER, "role": "MEMBER"},
            {"team_id": "team-2", "user_id": OUTSIDER, "role": "OWNER"},
        ],
        "metric_events": [],
    }


def make_session(user_id: str, *, expires_in: int = 3600, secret: str = JWT_SECRET) -> str:
    """Mint a Supabase-style HS256 session token."""
    now = int(time.time())
    claims = {
        "sub": user_id,
        "aud": "authenticated",
        "role": "authenticated",
        "email": f"{user_id}@example.com",
        "iat": now,
        "exp": now + expires_in,
    }
    return jose_jwt.encode(claims, secret, algorithm="HS256")


def bearer(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_session(user_id)}"}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture()
def db() -> SupabaseStub:
    return SupabaseStub(_seed_tables())


@pytest.fixture()
def store(db) -> EventStore:
    return EventStore(db)


@pytest.fixture()
def registry(db) -> ProjectRegistry:
    return ProjectRegistry(db)


@pytest.fixture()
def api_client(db):
    app = create_app()

    async def _stub_client():
        yield db

    app.dependency_overrides[get_supabase_async] = _stub_client
    with TestClient(app) as client:
        yield client
