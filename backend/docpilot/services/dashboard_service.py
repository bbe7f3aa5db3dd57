"""Overview numbers and the recent activity feed."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from docpilot.entities import Commit, DocumentationSuggestion, Repository, SuggestionStatus
from docpilot.repositories.interfaces import Store

ACTIVITY_REPOSITORY_WINDOW = 5
ACTIVITY_COMMITS_PER_REPOSITORY = 3
ACTIVITY_SUGGESTIONS_PER_REPOSITORY = 2
ACTIVITY_LIMIT = 10


@dataclass
class ActivityEntry:
    type: str
    repository: Repository
    timestamp: datetime
    commit: Optional[Commit] = None
    suggestion: Optional[DocumentationSuggestion] = None


class DashboardService:
    def __init__(self, store: Store):
        self.store = store

    async def stats(self) -> Dict[str, int]:
        """
        Counts for the overview page.

        ``coverage`` is the share of suggestions a reviewer kept (accepted or
        modified), as a whole percentage; 0 when nothing was suggested yet.
        """
        suggestions = self.store.suggestions
        total = await suggestions.count()
        kept = await suggestions.count(SuggestionStatus.ACCEPTED.value) + await suggestions.count(
            SuggestionStatus.MODIFIED.value
        )
        return {
            "active_repos": await self.store.repositories.count(active_only=True),
            "pending_docs": await suggestions.count(SuggestionStatus.PENDING.value),
            "ai_suggestions": total,
            "coverage": round(100 * kept / total) if total else 0,
        }

    async def recent_activity(self) -> List[ActivityEntry]:
        entries: List[ActivityEntry] = []
        repositories = await self.store.repositories.list()
        for repository in repositories[:ACTIVITY_REPOSITORY_WINDOW]:
            commits = await self.store.commits.list_since(
                repository.id, limit=ACTIVITY_COMMITS_PER_REPOSITORY
            )
            entries.extend(
                ActivityEntry("commit", repository, commit.timestamp, commit=commit)
                for commit in commits
            )
            suggestions = await self.store.suggestions.list(repository_id=repository.id)
            entries.extend(
                ActivityEntry("suggestion", repository, s.created_at, suggestion=s)
                for s in suggestions[:ACTIVITY_SUGGESTIONS_PER_REPOSITORY]
            )
        entries.sort(key=lambda entry: entry.timestamp, reverse=True)
        return entries[:ACTIVITY_LIMIT]
