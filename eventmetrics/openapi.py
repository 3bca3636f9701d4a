"""YAML export of the event metrics API schema at ``/public/openapi.yaml``.

The main app hides ``/openapi.json`` and ``/docs`` in production; this export
stays reachable so SDK generators can read the ingest and analytics contracts
without a session.
"""

from __future__ import annotations

from datetime import datetime, timezone

import yaml
from fastapi import FastAPI, Request, Response

__all__ = ["install_openapi_route"]


def install_openapi_route(app: FastAPI, source: FastAPI | None = None) -> None:
    """Serve ``source``'s schema (``app`` by default) as YAML at ``/openapi.yaml`` on ``app``.

    Mounted on the public sub-app with ``source`` set to the main API, so the
    exported document lists ``/v1/ingest`` and ``/v1/analytics/...`` rather than
    the sub-app's own empty route table. Cacheable for 5 minutes.
    """
    documented = source or app

    @app.get("/openapi.yaml", include_in_schema=False)
    async def _openapi_yaml(_: Request) -> Response:  # noqa: WPS430
        document = yaml.safe_dump(documented.openapi(), sort_keys=False)
        stamp = datetime.now(timezone.utc).date().isoformat()
        return Response(
            content=f"# generated: {stamp}\n{document}",
            media_type="application/x-yaml",
            headers={"Cache-Control": "public, max-age=300"},
        )
