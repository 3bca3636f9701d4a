"""Caller authentication for the analytics routes and the ingest API key.

Dashboard callers present a Supabase Auth session token (HS256 JWT). The
token is verified locally against ``SUPABASE_JWT_SECRET``; the ``sub`` claim
is the user id handed to the access gate.
"""

from __future__ import annotations

from typing import Any

from fastapi import Header
from jose import ExpiredSignatureError, JWTError, jwt as jose_jwt

from eventmetrics import APP_ENV, SUPABASE_JWT_SECRET
from eventmetrics.exceptions import AuthenticationError, BadRequestError
from eventmetrics.models import AuthContext

JWT_ALGORITHMS = ["HS256"]
JWT_AUDIENCE = "authenticated"


def decode_session_token(token: str, secret: str | None = None) -> dict[str, Any]:
    """Verify signature, expiry and audience; return the claims."""
    secret = secret or SUPABASE_JWT_SECRET
    if not secret:
        if APP_ENV != "development":
            raise AuthenticationError("Session verification is not configured")
        # Local development without a secret: trust the claims as-is
        try:
            claims = jose_jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise AuthenticationError("Invalid session token") from exc
        if not claims.get("sub"):
            raise AuthenticationError("Invalid session token")
        return claims

    try:
        claims = jose_jwt.decode(token, secret, algorithms=JWT_ALGORITHMS, audience=JWT_AUDIENCE)
    except ExpiredSignatureError as exc:
        raise AuthenticationError("Session expired") from exc
    except JWTError as exc:
        raise AuthenticationError("Invalid session token") from exc

    if not claims.get("sub"):
        raise AuthenticationError("Invalid session token")
    return claims


async def require_user(authorization: str | None = Header(None)) -> AuthContext:
    """FastAPI dependency: a verified caller identity or 401."""
    if not authorization:
        raise AuthenticationError("Missing authorization")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Expected a Bearer token")

    claims = decode_session_token(token.strip())
    metadata = claims.get("user_metadata") or {}
    return AuthContext(
        user_id=str(claims["sub"]),
        email=claims.get("email") or metadata.get("email"),
        role=claims.get("role"),
    )


async def require_api_key(x_api_key: str | None = Header(None)) -> str:
    """FastAPI dependency: the raw project API key.

    An absent header is a malformed request (400); whether a present key is
    valid is decided by the ingestion pipeline (401).
    """
    if not x_api_key or not x_api_key.strip():
        raise BadRequestError("Missing x-api-key header")
    return x_api_key.strip()
