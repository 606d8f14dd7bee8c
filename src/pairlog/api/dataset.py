"""
Dataset ingestion API endpoint.

Main endpoint: POST /api/dataset
"""

import json
import uuid
from typing import Dict

import structlog
from fastapi import APIRouter, Depends, Request, Response

from ..core.admission import client_key, read_limited_body
from ..core.exceptions import PayloadTooLargeError, RateLimitError, ValidationError
from ..core.pipeline import IngestionPipeline, IngestOutcome
from ..models import IngestResponse

logger = structlog.get_logger(__name__)

router = APIRouter()


async def admit_request(request: Request, response: Response) -> bytes:
    """
    Admission gate for the ingestion endpoint.

    Enforces the body ceiling, then the per-caller rate limit. Rejections
    touch neither the cache, the log, nor the ingestion counters.
    """
    state = request.app.state

    try:
        body = await read_limited_body(request, state.settings.max_body_bytes)
    except PayloadTooLargeError:
        state.metrics.record_rejected("payload_too_large")
        logger.warning("Payload too large", client=client_key(request))
        raise

    try:
        window = await state.rate_limiter.check_rate_limit(client_key(request))
    except RateLimitError:
        state.metrics.record_rejected("rate_limited")
        raise

    response.headers["RateLimit-Limit"] = str(window.limit)
    response.headers["RateLimit-Remaining"] = str(window.remaining)
    response.headers["RateLimit-Reset"] = str(window.get_retry_after())
    return body


def get_pipeline(request: Request) -> IngestionPipeline:
    """Dependency to get the ingestion pipeline from app state."""
    return request.app.state.pipeline


@router.post(
    "/api/dataset",
    response_model=IngestResponse,
    response_model_exclude_none=True,
    summary="Ingest a translation pair",
)
async def ingest_record(
    request: Request,
    body: bytes = Depends(admit_request),
    pipeline: IngestionPipeline = Depends(get_pipeline),
) -> Dict[str, bool]:
    """
    Ingest one translation-pair record.

    Responds {"ok": true} once the record is in the dataset log, or
    {"skipped": true} if the same model and source text was seen recently.
    """
    request_id = str(uuid.uuid4())

    try:
        raw = json.loads(body) if body else {}
    except ValueError:
        request.app.state.metrics.record_rejected("invalid_json")
        logger.info("Malformed JSON body", request_id=request_id, client=client_key(request))
        raise ValidationError("Invalid source_text") from None

    outcome = await pipeline.ingest(raw, request_id=request_id)

    if outcome is IngestOutcome.SKIPPED:
        return {"skipped": True}
    return {"ok": True}
