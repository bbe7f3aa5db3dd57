"""Documentation suggestion review endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from docpilot.api.deps import get_suggestion_service
from docpilot.dtos import (
    SuggestionListResponse,
    SuggestionResponse,
    SuggestionReviewRequest,
)
from docpilot.entities import SuggestionStatus
from docpilot.services.suggestion_service import SuggestionService

router = APIRouter(prefix="/documentation-suggestions", tags=["Documentation"])


@router.get("", response_model=SuggestionListResponse)
async def list_suggestions(
    repository_id: Optional[str] = Query(None),
    status: Optional[SuggestionStatus] = Query(None),
    service: SuggestionService = Depends(get_suggestion_service),
):
    suggestions = await service.list(
        repository_id=repository_id, status=status.value if status else None
    )
    items = [SuggestionResponse.from_entity(s) for s in suggestions]
    return SuggestionListResponse(items=items, total=len(items))


@router.patch("/{suggestion_id}", response_model=SuggestionResponse)
async def review_suggestion(
    payload: SuggestionReviewRequest,
    suggestion_id: str = Path(...),
    service: SuggestionService = Depends(get_suggestion_service),
):
    suggestion = await service.review(
        suggestion_id, payload.status, payload.suggested_content
    )
    return SuggestionResponse.from_entity(suggestion)
