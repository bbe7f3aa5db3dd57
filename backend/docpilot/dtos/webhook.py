"""GitHub webhook payloads, validated at the HTTP boundary."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class WebhookAuthor(BaseModel):
    name: str = "Unknown"
    email: Optional[str] = None


class WebhookCommit(BaseModel):
    id: str = Field(..., min_length=1)
    message: str = ""
    author: WebhookAuthor = Field(default_factory=WebhookAuthor)
    timestamp: Optional[datetime] = None
    added: List[str] = Field(default_factory=list)
    removed: List[str] = Field(default_factory=list)
    modified: List[str] = Field(default_factory=list)

    @property
    def files_changed(self) -> List[str]:
        return [*self.added, *self.modified, *self.removed]


class WebhookRepository(BaseModel):
    id: int
    name: str
    full_name: str = Field(..., pattern=r"^[^/\s]+/[^/\s]+$")
    html_url: Optional[str] = None
    description: Optional[str] = None


class PushEvent(BaseModel):
    ref: Optional[str] = None
    repository: WebhookRepository
    commits: List[WebhookCommit] = Field(default_factory=list)
    head_commit: Optional[WebhookCommit] = None


class PullRequestEvent(BaseModel):
    action: str
    number: Optional[int] = None
    repository: WebhookRepository


class WebhookResponse(BaseModel):
    event: str
    status: str  # processed | ignored
    commits_processed: int = 0
    suggestions_created: int = 0
