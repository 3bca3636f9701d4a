"""Event ingest – project API key + JSON array of 1..500 typed events."""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, Request

from eventmetrics.exceptions import PayloadTooLargeError, ValidationError
from eventmetrics.models import ErrorResponse, IngestResponse
from eventmetrics.services.ingest import IngestionPipeline
from eventmetrics.settings import INGEST_MAX_BYTES, INGEST_RATE_LIMIT
from eventmetrics.utils.auth import require_api_key
from eventmetrics.utils.dependencies import get_ingestion_pipeline
from eventmetrics.utils.rate_limit import api_key_or_address, limiter

router = APIRouter(prefix="/v1", tags=["ingest"])


@router.post(
    "/ingest",
    response_model=IngestResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing API key or invalid batch"},
        401: {"model": ErrorResponse, "description": "Unknown API key"},
        413: {"model": ErrorResponse},
    },
)
@limiter.limit(INGEST_RATE_LIMIT, key_func=api_key_or_address)
async def ingest_events(
    request: Request,
    api_key: str = Depends(require_api_key),
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline),
):
    """Store a batch of events. Items whose ``eventId`` was already stored are skipped."""

    # ---------------------------------------------------------------------
    # Payload size guard – reject oversized bodies before parsing them
    # ---------------------------------------------------------------------
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > INGEST_MAX_BYTES:
        raise PayloadTooLargeError("Payload too large")

    raw = await request.body()
    if len(raw) > INGEST_MAX_BYTES:
        raise PayloadTooLargeError("Payload too large")

    try:
        payload = json.loads(raw)
    except ValueError:
        raise ValidationError([{"path": "root", "message": "Body must be a JSON array of events"}]) from None

    return await pipeline.ingest(api_key, payload)
