"""ASGI entry-point for the event metrics API.

This module constructs the FastAPI instance, wires global middleware and
error handling, registers all route groups, and exposes the `app` variable
that ASGI servers import.
"""

from __future__ import annotations

import logging
import os
import traceback
from contextvars import ContextVar
from time import perf_counter
from typing import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from eventmetrics import APP_ENV
from eventmetrics.exceptions import EventMetricsError
from eventmetrics.models import HealthResponse
from eventmetrics.settings import ALLOWED_ORIGINS
from eventmetrics.utils.logger import configure_logging, logger
from eventmetrics.utils.rate_limit import limiter


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach request-level context vars for structured logging."""

    _request_id_ctx: ContextVar[str] = ContextVar("request_id", default="-")

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:  # type: ignore[override]
        start = perf_counter()
        request_id = request.headers.get("X-Request-Id", os.urandom(4).hex())
        token = self._request_id_ctx.set(request_id)
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["X-Request-Id"] = request_id
        finally:
            duration_ms = (perf_counter() - start) * 1000
            logger.info(
                "request.complete",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": status_code,
                    "duration_ms": round(duration_ms, 2),
                    "request_id": request_id,
                },
            )
            self._request_id_ctx.reset(token)
        return response


async def handle_domain_error(request: Request, exc: EventMetricsError) -> JSONResponse:
    """Render any taxonomy error as ``{error, message[, issues]}``."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="Event Metrics API",
        version="0.1.0",
        docs_url="/docs" if APP_ENV != "production" else None,
        redoc_url=None,
        openapi_url="/openapi.json" if APP_ENV != "production" else None,
    )

    # Global middleware
    app.add_middleware(RequestContextMiddleware)
    # Rate limiting middleware (SlowAPI expects limiter via app.state)
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_exception_handler(EventMetricsError, handle_domain_error)

    # Global exception handler - logs full tracebacks for any unhandled 500s
    @app.exception_handler(Exception)
    async def log_unhandled_exceptions(request: Request, exc: Exception):
        error_logger = logging.getLogger("uvicorn.error")
        error_logger.error(
            "UNHANDLED %s at %s %s\n%s",
            type(exc).__name__,
            request.method,
            request.url.path,
            "".join(traceback.format_tb(exc.__traceback__)),
        )
        # Re-raise so the server still answers 500
        raise exc

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Api-Key", "X-Request-Id"],
        max_age=600,
    )

    # Health check
    @app.get("/", response_model=HealthResponse)
    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:  # pylint: disable=unused-variable
        return HealthResponse()

    # -------------------------------------------------------------------
    # Public (unauthenticated) sub-app → wildcard CORS, OpenAPI export
    # -------------------------------------------------------------------
    public_app = FastAPI(title="Event Metrics Public API", docs_url=None, redoc_url=None, openapi_url=None)
    public_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
        max_age=600,
    )
    from eventmetrics.openapi import install_openapi_route  # noqa: WPS433 (runtime import)

    install_openapi_route(public_app, source=app)
    app.mount("/public", public_app)

    from eventmetrics.routers import analytics_routes, ingest_routes  # noqa: WPS433

    app.include_router(ingest_routes.router)
    app.include_router(analytics_routes.router)

    return app


# The object ASGI servers import
app = create_app()
