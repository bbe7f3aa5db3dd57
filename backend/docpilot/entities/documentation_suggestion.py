"""DocumentationSuggestion entity - a proposed doc change awaiting review."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from docpilot.entities.base import BaseEntity, PyObjectId


class SuggestionStatus(str, Enum):
    """Review status. Every suggestion starts at PENDING."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    MODIFIED = "modified"  # accepted with reviewer-edited content


REVIEW_STATUSES = frozenset(
    {SuggestionStatus.ACCEPTED, SuggestionStatus.REJECTED, SuggestionStatus.MODIFIED}
)


class SuggestionKind(str, Enum):
    FUNCTION = "function"
    CLASS = "class"
    MODULE = "module"
    API = "api"
    PROCESS = "process"  # derived from aggregate pattern analysis, no commit


class DocumentationSuggestion(BaseEntity):
    repository_id: PyObjectId
    commit_id: Optional[PyObjectId] = Field(
        default=None,
        description="Originating commit; None for aggregate (process) suggestions",
    )
    function_name: Optional[str] = None
    class_name: Optional[str] = None
    file_name: str
    suggested_content: str
    confidence: int = Field(default=0, ge=0, le=100)
    kind: SuggestionKind = SuggestionKind.MODULE
    status: SuggestionStatus = SuggestionStatus.PENDING
    reviewed_at: Optional[datetime] = None
