"""
Storage contracts used by the services.

The ingestion pipeline and the API only talk to these interfaces. Two
implementations exist: the MongoDB repositories in this package and the
in-process ones in ``docpilot.database.memory_store``.

Rules that must hold regardless of backend (initial suggestion state,
review transitions) live here, in the concrete methods of the base
classes; backends only implement the raw reads and writes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from bson import ObjectId

from docpilot.entities import (
    REVIEW_STATUSES,
    AnalysisResult,
    ChatMessage,
    Commit,
    DocumentationSuggestion,
    Repository,
    SuggestionStatus,
)
from docpilot.services.pipeline_exceptions import (
    InvalidStatusTransition,
    SuggestionNotFound,
)
from docpilot.utils.datetime import utc_now

Identifier = str | ObjectId


class RepositoryStore(ABC):
    """Repository Registry persistence."""

    @abstractmethod
    async def insert(self, repository: Repository) -> Repository: ...

    @abstractmethod
    async def get(self, repository_id: Identifier) -> Optional[Repository]: ...

    @abstractmethod
    async def find_active_by_full_name(self, full_name: str) -> Optional[Repository]: ...

    @abstractmethod
    async def list(self, active_only: bool = False) -> List[Repository]:
        """Most recently created first."""

    @abstractmethod
    async def count(self, active_only: bool = False) -> int: ...

    @abstractmethod
    async def update_fields(
        self, repository_id: Identifier, updates: Dict[str, Any]
    ) -> Optional[Repository]: ...

    async def mark_synced(
        self, repository_id: Identifier, at: datetime
    ) -> Optional[Repository]:
        return await self.update_fields(repository_id, {"last_sync_at": at})


class CommitStore(ABC):
    """Append-only commit history, unique per (repository_id, commit_hash)."""

    @abstractmethod
    async def upsert(
        self, repository_id: Identifier, commit: Commit
    ) -> Tuple[Commit, bool]:
        """
        Insert the commit unless the hash is already stored.

        Returns the stored commit and whether this call inserted it. The
        check and the insert are atomic; of two concurrent calls for the
        same hash exactly one reports ``is_new=True``.
        """

    @abstractmethod
    async def list_since(
        self,
        repository_id: Identifier,
        since: Optional[datetime] = None,
        limit: int = 50,
    ) -> List[Commit]:
        """Newest first by authoring timestamp."""

    @abstractmethod
    async def list_all(self, repository_id: Identifier) -> List[Commit]: ...

    @abstractmethod
    async def existing_hashes(
        self, repository_id: Identifier, hashes: Iterable[str]
    ) -> Set[str]: ...


class SuggestionStore(ABC):
    """Documentation suggestions and their review state machine."""

    async def create(self, suggestion: DocumentationSuggestion) -> DocumentationSuggestion:
        """Persist a new suggestion. Always starts pending and unreviewed."""
        fresh = suggestion.model_copy(
            update={
                "id": None,
                "status": SuggestionStatus.PENDING.value,
                "created_at": utc_now(),
                "updated_at": None,
                "reviewed_at": None,
            }
        )
        return await self._insert(fresh)

    async def update_status(
        self,
        suggestion_id: Identifier,
        status: SuggestionStatus | str,
        suggested_content: Optional[str] = None,
    ) -> DocumentationSuggestion:
        """
        Apply a review decision and stamp ``reviewed_at``.

        ``modified`` means accepted with edited content and is the only
        status that may change ``suggested_content``.
        """
        try:
            target = SuggestionStatus(status)
        except ValueError as exc:
            raise InvalidStatusTransition(f"Unknown status: {status}") from exc
        if target not in REVIEW_STATUSES:
            raise InvalidStatusTransition(
                f"Suggestions cannot be moved back to {target.value}"
            )

        updates: Dict[str, Any] = {"status": target.value, "reviewed_at": utc_now()}
        if target == SuggestionStatus.MODIFIED:
            if not suggested_content:
                raise InvalidStatusTransition(
                    "A modified review must include the edited content"
                )
            updates["suggested_content"] = suggested_content

        updated = await self._apply_review(suggestion_id, updates)
        if updated is None:
            raise SuggestionNotFound(str(suggestion_id))
        return updated

    @abstractmethod
    async def _insert(self, suggestion: DocumentationSuggestion) -> DocumentationSuggestion: ...

    @abstractmethod
    async def _apply_review(
        self, suggestion_id: Identifier, updates: Dict[str, Any]
    ) -> Optional[DocumentationSuggestion]: ...

    @abstractmethod
    async def get(self, suggestion_id: Identifier) -> Optional[DocumentationSuggestion]: ...

    @abstractmethod
    async def list(
        self,
        repository_id: Optional[Identifier] = None,
        status: Optional[str] = None,
    ) -> List[DocumentationSuggestion]:
        """Newest first; both filters optional and composable."""

    @abstractmethod
    async def count(self, status: Optional[str] = None) -> int: ...


class AnalysisResultStore(ABC):
    """Write-once audit log of analysis invocations."""

    @abstractmethod
    async def create(self, result: AnalysisResult) -> AnalysisResult: ...

    @abstractmethod
    async def list(
        self,
        repository_id: Identifier,
        result_type: Optional[str] = None,
        limit: int = 50,
    ) -> List[AnalysisResult]: ...


class ChatMessageStore(ABC):
    """Assistant conversation history, shared across repositories."""

    @abstractmethod
    async def create(self, message: ChatMessage) -> ChatMessage: ...

    @abstractmethod
    async def list_recent(self, limit: int = 20) -> List[ChatMessage]:
        """Newest first."""


class Store(ABC):
    """Bundle of all stores with lifecycle owned by process startup/shutdown."""

    repositories: RepositoryStore
    commits: CommitStore
    suggestions: SuggestionStore
    analysis_results: AnalysisResultStore
    chat_messages: ChatMessageStore

    @abstractmethod
    async def delete_repository(self, repository_id: Identifier) -> bool:
        """
        Delete a repository and everything it owns as one atomic operation.

        Returns False when the repository does not exist.
        """

    async def ping(self) -> None:
        return None

    async def close(self) -> None:
        return None
