"""DTOs for documentation suggestion review."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from docpilot.entities import (
    DocumentationSuggestion,
    PyObjectIdStr,
    SuggestionKind,
    SuggestionStatus,
)


class SuggestionResponse(BaseModel):
    id: PyObjectIdStr
    repository_id: PyObjectIdStr
    commit_id: Optional[PyObjectIdStr] = None
    function_name: Optional[str]
    class_name: Optional[str]
    file_name: str
    suggested_content: str
    confidence: int
    kind: SuggestionKind
    status: SuggestionStatus
    created_at: datetime
    reviewed_at: Optional[datetime]

    @classmethod
    def from_entity(cls, suggestion: DocumentationSuggestion) -> "SuggestionResponse":
        return cls.model_validate(suggestion.model_dump())


class SuggestionListResponse(BaseModel):
    items: List[SuggestionResponse]
    total: int


class SuggestionReviewRequest(BaseModel):
    """Reviewer decision. ``suggested_content`` is required for ``modified``."""

    status: SuggestionStatus
    suggested_content: Optional[str] = Field(default=None, min_length=1)
