"""GitHub webhook receiver."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import JSONResponse

from docpilot.api.deps import get_pipeline, get_settings
from docpilot.config import Settings
from docpilot.dtos import WebhookResponse
from docpilot.services.github_webhook import (
    MalformedPayload,
    handle_github_event,
    verify_signature,
)
from docpilot.services.ingestion_service import IngestionPipeline
from docpilot.services.pipeline_exceptions import PipelineError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post("/github", response_model=WebhookResponse)
async def github_webhook(
    request: Request,
    x_github_event: Optional[str] = Header(None),
    x_hub_signature_256: Optional[str] = Header(None),
    x_github_delivery: Optional[str] = Header(None),
    pipeline: IngestionPipeline = Depends(get_pipeline),
    app_settings: Settings = Depends(get_settings),
):
    """
    Receive a GitHub delivery.

    The signature is checked against the raw body before anything is
    parsed; a mismatch returns 401 and touches nothing.
    """
    body = await request.body()
    verify_signature(x_hub_signature_256, body, app_settings.WEBHOOK_SECRET)

    event = x_github_event or ""
    logger.info("GitHub delivery %s: %s", x_github_delivery or "-", event or "unknown")
    try:
        return await handle_github_event(event, body, pipeline)
    except MalformedPayload as exc:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": str(exc), "code": "BAD_REQUEST"},
        )
    except PipelineError:
        raise
    except Exception:
        logger.exception("Failed to process GitHub %s webhook", event)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to process webhook"},
        )
