"""Repository layer for database operations"""

from .analysis_result import AnalysisResultRepository
from .base import BaseRepository
from .chat_message import ChatMessageRepository
from .commit import CommitRepository
from .documentation_suggestion import DocumentationSuggestionRepository
from .interfaces import (
    AnalysisResultStore,
    ChatMessageStore,
    CommitStore,
    RepositoryStore,
    Store,
    SuggestionStore,
)
from .repository import RepositoryRepository

__all__ = [
    "BaseRepository",
    "RepositoryRepository",
    "CommitRepository",
    "DocumentationSuggestionRepository",
    "AnalysisResultRepository",
    "ChatMessageRepository",
    # Contracts
    "Store",
    "RepositoryStore",
    "CommitStore",
    "SuggestionStore",
    "AnalysisResultStore",
    "ChatMessageStore",
]
