"""DTOs for the Repository Registry endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from docpilot.entities import PyObjectIdStr, Repository


class RepositoryCreateRequest(BaseModel):
    """Register a remote repository for ingestion."""

    git_url: str = Field(..., min_length=1, description="HTTPS or SSH locator")
    provider: str = "github"
    access_token: Optional[str] = Field(default=None, repr=False)
    name: Optional[str] = None
    description: Optional[str] = None


class RepositoryResponse(BaseModel):
    id: PyObjectIdStr
    name: str
    description: Optional[str]
    git_url: str
    full_name: str
    provider: str
    webhook_id: Optional[str]
    is_active: bool
    has_credential: bool
    last_sync_at: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def from_entity(cls, repository: Repository) -> "RepositoryResponse":
        payload = repository.model_dump(exclude={"credential"})
        payload["has_credential"] = repository.credential_value() is not None
        return cls.model_validate(payload)


class SyncResponse(BaseModel):
    """Outcome of one ingestion run."""

    repository_id: str
    commits_processed: int
    new_commits: int
    duplicates: int
    analyzed: int
    analysis_skipped: int
    analysis_failed: int
    suggestions_created: int
