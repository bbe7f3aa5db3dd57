"""Request/response and payload schemas."""

from .analysis import CommitAnalysis, ProcessImprovement, ReleaseNotes, SuggestedDocumentation
from .assistant import (
    AnalysisResultResponse,
    AskRequest,
    AskResponse,
    MissingDocumentationResponse,
)
from .chat import (
    ChatHistoryResponse,
    ChatMessageRequest,
    ChatMessageResponse,
    ChatReplyResponse,
)
from .commit import CommitListResponse, CommitResponse
from .dashboard import ActivityItem, DashboardStatsResponse, RecentActivityResponse
from .repository import RepositoryCreateRequest, RepositoryResponse, SyncResponse
from .suggestion import SuggestionListResponse, SuggestionResponse, SuggestionReviewRequest
from .webhook import PullRequestEvent, PushEvent, WebhookResponse

__all__ = [
    "SuggestedDocumentation",
    "CommitAnalysis",
    "ProcessImprovement",
    "ReleaseNotes",
    "AnalysisResultResponse",
    "AskRequest",
    "AskResponse",
    "MissingDocumentationResponse",
    "ChatMessageRequest",
    "ChatMessageResponse",
    "ChatHistoryResponse",
    "ChatReplyResponse",
    "DashboardStatsResponse",
    "ActivityItem",
    "RecentActivityResponse",
    "CommitResponse",
    "CommitListResponse",
    "RepositoryCreateRequest",
    "RepositoryResponse",
    "SyncResponse",
    "SuggestionResponse",
    "SuggestionListResponse",
    "SuggestionReviewRequest",
    "PushEvent",
    "PullRequestEvent",
    "WebhookResponse",
]
