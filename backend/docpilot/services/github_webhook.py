"""GitHub webhook verification and dispatch."""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from typing import Optional

from pydantic import ValidationError

from docpilot.dtos.webhook import PullRequestEvent, PushEvent, WebhookResponse
from docpilot.services.ingestion_service import IngestionPipeline
from docpilot.services.pipeline_exceptions import SignatureInvalid

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="


class MalformedPayload(ValueError):
    """Raised when a webhook body is not JSON or misses required fields."""


def compute_signature(body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(signature: Optional[str], body: bytes, secret: str) -> None:
    """
    Check ``X-Hub-Signature-256`` against an HMAC-SHA256 of the raw body.

    Raises SignatureInvalid on a missing, malformed or mismatched header.
    """
    if not secret:
        raise SignatureInvalid("Webhook secret is not configured")
    if not signature or not signature.startswith(SIGNATURE_PREFIX):
        raise SignatureInvalid("Missing or malformed signature header")
    expected = compute_signature(body, secret)
    if not hmac.compare_digest(signature.encode("utf-8"), expected.encode("utf-8")):
        raise SignatureInvalid("Invalid signature")


def _load(body: bytes) -> dict:
    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedPayload("Invalid JSON payload") from exc
    if not isinstance(payload, dict):
        raise MalformedPayload("Webhook payload must be a JSON object")
    return payload


async def handle_github_event(
    event: str, body: bytes, pipeline: IngestionPipeline
) -> WebhookResponse:
    """Dispatch a verified delivery. Only ``push`` triggers ingestion."""
    if event == "ping":
        return WebhookResponse(event=event, status="ignored")

    if event == "push":
        try:
            push = PushEvent.model_validate(_load(body))
        except ValidationError as exc:
            raise MalformedPayload(f"Invalid push payload: {exc.error_count()} errors") from exc
        summary = await pipeline.ingest_push(push)
        return WebhookResponse(
            event=event,
            status="processed",
            commits_processed=summary.commits_processed,
            suggestions_created=summary.suggestions_created,
        )

    if event == "pull_request":
        try:
            pull_request = PullRequestEvent.model_validate(_load(body))
        except ValidationError as exc:
            raise MalformedPayload("Invalid pull_request payload") from exc
        logger.info(
            "Pull request event received: %s #%s on %s",
            pull_request.action,
            pull_request.number,
            pull_request.repository.full_name,
        )
        return WebhookResponse(event=event, status="ignored")

    logger.debug("Ignoring GitHub event %s", event)
    return WebhookResponse(event=event or "unknown", status="ignored")
