"""
In-process Store.

Used by the test-suite and for local runs without MongoDB
(``STORAGE_BACKEND=memory``). Every method runs without awaiting between
its reads and writes, so on a single event loop each call is atomic, which
is what the commit upsert and the cascade delete rely on.

Entities are copied on the way in and out so callers cannot mutate stored
state by holding a reference.
"""

from __future__ import annotations

import itertools
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from bson import ObjectId
from bson.errors import InvalidId

from docpilot.entities import (
    AnalysisResult,
    BaseEntity,
    ChatMessage,
    Commit,
    DocumentationSuggestion,
    Repository,
)
from docpilot.repositories.interfaces import (
    AnalysisResultStore,
    ChatMessageStore,
    CommitStore,
    Identifier,
    RepositoryStore,
    Store,
    SuggestionStore,
)
from docpilot.services.pipeline_exceptions import RepositoryAlreadyRegistered
from docpilot.utils.datetime import utc_now


def _oid(value: Identifier | None) -> Optional[ObjectId]:
    if value is None or isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


class _Table:
    """Insertion-ordered rows keyed by ObjectId."""

    def __init__(self) -> None:
        self.rows: Dict[ObjectId, BaseEntity] = {}
        self._seq = itertools.count()
        self.order: Dict[ObjectId, int] = {}

    def insert(self, entity: BaseEntity) -> BaseEntity:
        identifier = entity.id or ObjectId()
        stored = entity.model_copy(update={"id": identifier}, deep=True)
        self.rows[identifier] = stored
        self.order[identifier] = next(self._seq)
        return stored.model_copy(deep=True)

    def get(self, identifier: Identifier | None):
        key = _oid(identifier)
        entity = self.rows.get(key) if key is not None else None
        return entity.model_copy(deep=True) if entity is not None else None

    def update(self, identifier: Identifier, updates: Dict[str, Any]):
        key = _oid(identifier)
        if key is None or key not in self.rows:
            return None
        updated = self.rows[key].model_copy(update=updates, deep=True)
        self.rows[key] = updated
        return updated.model_copy(deep=True)

    def select(self, predicate, sort_field: str) -> List[BaseEntity]:
        matches = [
            (identifier, entity)
            for identifier, entity in self.rows.items()
            if predicate(entity)
        ]
        # Newest first; ties broken by insertion order, latest first
        matches.sort(
            key=lambda pair: (getattr(pair[1], sort_field), self.order[pair[0]]),
            reverse=True,
        )
        return [entity.model_copy(deep=True) for _, entity in matches]

    def delete_where(self, predicate) -> int:
        doomed = [key for key, entity in self.rows.items() if predicate(entity)]
        for key in doomed:
            del self.rows[key]
            del self.order[key]
        return len(doomed)


class MemoryRepositoryStore(RepositoryStore):
    def __init__(self, table: _Table):
        self.table = table

    async def insert(self, repository: Repository) -> Repository:
        if repository.is_active and any(
            row.is_active and row.full_name == repository.full_name
            for row in self.table.rows.values()
        ):
            raise RepositoryAlreadyRegistered(repository.full_name)
        return self.table.insert(repository)

    async def get(self, repository_id: Identifier) -> Optional[Repository]:
        return self.table.get(repository_id)

    async def find_active_by_full_name(self, full_name: str) -> Optional[Repository]:
        wanted = full_name.lower()
        matches = self.table.select(
            lambda repo: repo.is_active and repo.full_name == wanted, "created_at"
        )
        return matches[0] if matches else None

    async def list(self, active_only: bool = False) -> List[Repository]:
        return self.table.select(
            lambda repo: repo.is_active or not active_only, "created_at"
        )

    async def count(self, active_only: bool = False) -> int:
        return sum(1 for repo in self.table.rows.values() if repo.is_active or not active_only)

    async def update_fields(
        self, repository_id: Identifier, updates: Dict[str, Any]
    ) -> Optional[Repository]:
        payload = dict(updates, updated_at=utc_now())
        return self.table.update(repository_id, payload)


class MemoryCommitStore(CommitStore):
    def __init__(self, table: _Table):
        self.table = table

    def _find(self, repo_oid: ObjectId, commit_hash: str) -> Optional[Commit]:
        for entity in self.table.rows.values():
            if entity.repository_id == repo_oid and entity.commit_hash == commit_hash:
                return entity.model_copy(deep=True)
        return None

    async def upsert(
        self, repository_id: Identifier, commit: Commit
    ) -> Tuple[Commit, bool]:
        repo_oid = _oid(repository_id)
        existing = self._find(repo_oid, commit.commit_hash)
        if existing is not None:
            return existing, False
        stored = self.table.insert(
            commit.model_copy(update={"id": None, "repository_id": repo_oid})
        )
        return stored, True

    async def list_since(
        self,
        repository_id: Identifier,
        since: Optional[datetime] = None,
        limit: int = 50,
    ) -> List[Commit]:
        repo_oid = _oid(repository_id)
        commits = self.table.select(
            lambda c: c.repository_id == repo_oid
            and (since is None or c.timestamp >= since),
            "timestamp",
        )
        return commits[:limit] if limit else commits

    async def list_all(self, repository_id: Identifier) -> List[Commit]:
        return await self.list_since(repository_id, None, limit=0)

    async def existing_hashes(
        self, repository_id: Identifier, hashes: Iterable[str]
    ) -> Set[str]:
        repo_oid = _oid(repository_id)
        wanted = set(hashes)
        return {
            entity.commit_hash
            for entity in self.table.rows.values()
            if entity.repository_id == repo_oid and entity.commit_hash in wanted
        }


class MemorySuggestionStore(SuggestionStore):
    def __init__(self, table: _Table):
        self.table = table

    async def _insert(
        self, suggestion: DocumentationSuggestion
    ) -> DocumentationSuggestion:
        return self.table.insert(suggestion)

    async def _apply_review(
        self, suggestion_id: Identifier, updates: Dict[str, Any]
    ) -> Optional[DocumentationSuggestion]:
        return self.table.update(suggestion_id, updates)

    async def get(self, suggestion_id: Identifier) -> Optional[DocumentationSuggestion]:
        return self.table.get(suggestion_id)

    async def list(
        self,
        repository_id: Optional[Identifier] = None,
        status: Optional[str] = None,
    ) -> List[DocumentationSuggestion]:
        repo_oid = _oid(repository_id)
        if repository_id is not None and repo_oid is None:
            return []
        return self.table.select(
            lambda s: (repo_oid is None or s.repository_id == repo_oid)
            and (not status or s.status == status),
            "created_at",
        )

    async def count(self, status: Optional[str] = None) -> int:
        return sum(1 for s in self.table.rows.values() if not status or s.status == status)


class MemoryAnalysisResultStore(AnalysisResultStore):
    def __init__(self, table: _Table):
        self.table = table

    async def create(self, result: AnalysisResult) -> AnalysisResult:
        return self.table.insert(result.model_copy(update={"id": None}))

    async def list(
        self,
        repository_id: Identifier,
        result_type: Optional[str] = None,
        limit: int = 50,
    ) -> List[AnalysisResult]:
        repo_oid = _oid(repository_id)
        results = self.table.select(
            lambda r: r.repository_id == repo_oid
            and (not result_type or r.type == result_type),
            "created_at",
        )
        return results[:limit] if limit else results


class MemoryChatMessageStore(ChatMessageStore):
    def __init__(self, table: _Table):
        self.table = table

    async def create(self, message: ChatMessage) -> ChatMessage:
        return self.table.insert(message.model_copy(update={"id": None}))

    async def list_recent(self, limit: int = 20) -> List[ChatMessage]:
        messages = self.table.select(lambda m: True, "created_at")
        return messages[:limit] if limit else messages


class MemoryStore(Store):
    def __init__(self) -> None:
        self._repositories = _Table()
        self._commits = _Table()
        self._suggestions = _Table()
        self._analysis_results = _Table()
        self._chat_messages = _Table()
        self.repositories = MemoryRepositoryStore(self._repositories)
        self.commits = MemoryCommitStore(self._commits)
        self.suggestions = MemorySuggestionStore(self._suggestions)
        self.analysis_results = MemoryAnalysisResultStore(self._analysis_results)
        self.chat_messages = MemoryChatMessageStore(self._chat_messages)

    async def delete_repository(self, repository_id: Identifier) -> bool:
        repo_oid = _oid(repository_id)
        if repo_oid is None or repo_oid not in self._repositories.rows:
            return False
        owned = lambda entity: entity.repository_id == repo_oid  # noqa: E731
        self._commits.delete_where(owned)
        self._suggestions.delete_where(owned)
        self._analysis_results.delete_where(owned)
        del self._repositories.rows[repo_oid]
        del self._repositories.order[repo_oid]
        return True
