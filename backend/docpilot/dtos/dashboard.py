"""DTOs for the overview page."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel

from docpilot.dtos.commit import CommitResponse
from docpilot.dtos.suggestion import SuggestionResponse
from docpilot.entities import PyObjectIdStr


class DashboardStatsResponse(BaseModel):
    active_repos: int
    pending_docs: int
    ai_suggestions: int
    coverage: int


class ActivityItem(BaseModel):
    type: Literal["commit", "suggestion"]
    repository_id: PyObjectIdStr
    repository: str
    timestamp: datetime
    commit: Optional[CommitResponse] = None
    suggestion: Optional[SuggestionResponse] = None

    @classmethod
    def from_entry(cls, entry) -> "ActivityItem":
        return cls(
            type=entry.type,
            repository_id=entry.repository.id,
            repository=entry.repository.full_name,
            timestamp=entry.timestamp,
            commit=CommitResponse.from_entity(entry.commit) if entry.commit else None,
            suggestion=(
                SuggestionResponse.from_entity(entry.suggestion) if entry.suggestion else None
            ),
        )


class RecentActivityResponse(BaseModel):
    items: List[ActivityItem]
