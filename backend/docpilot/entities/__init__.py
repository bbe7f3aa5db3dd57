"""Database entity models - represents the actual structure stored in MongoDB"""

from .analysis_result import AnalysisResult, AnalysisResultType
from .base import BaseEntity, PyObjectId, PyObjectIdStr
from .chat_message import ChatMessage
from .commit import Commit
from .documentation_suggestion import (
    REVIEW_STATUSES,
    DocumentationSuggestion,
    SuggestionKind,
    SuggestionStatus,
)
from .repository import Repository

__all__ = [
    "BaseEntity",
    "PyObjectId",
    "PyObjectIdStr",
    "Repository",
    "Commit",
    "DocumentationSuggestion",
    "SuggestionKind",
    "SuggestionStatus",
    "REVIEW_STATUSES",
    "AnalysisResult",
    "AnalysisResultType",
    "ChatMessage",
]
