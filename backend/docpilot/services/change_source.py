"""
Change-source adapter contract.

A change source lists commits (with diffs) from a version-control hosting
provider and manages push webhooks there. The ingestion pipeline only sees
this interface; ``docpilot.services.github.client.GithubChangeSource`` is the
GitHub implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence


@dataclass(frozen=True)
class RepoLocator:
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass
class CommitDetail:
    files_changed: List[str] = field(default_factory=list)
    diff: Optional[str] = None


@dataclass
class SourceCommit:
    hash: str
    message: str
    author: str
    author_email: str
    timestamp: datetime
    files_changed: List[str] = field(default_factory=list)
    diff: Optional[str] = None


@dataclass
class RepositoryMetadata:
    display_name: str
    description: str
    canonical_url: str
    latest_commit: Optional[SourceCommit] = None


class ChangeSource(ABC):
    """Capability surface of a hosting provider. Use as an async context manager."""

    provider: str = ""
    requires_credential: bool = True

    @staticmethod
    @abstractmethod
    def parse_locator(url: str) -> Optional[RepoLocator]:
        """Parse an HTTPS or SSH locator. Returns None when it does not match."""

    @abstractmethod
    async def fetch_repository_metadata(self, owner: str, name: str) -> RepositoryMetadata: ...

    @abstractmethod
    async def list_commits(
        self,
        owner: str,
        name: str,
        since: Optional[datetime] = None,
        limit: int = 50,
    ) -> List[SourceCommit]:
        """One listing request. Commits come back in provider order without files or diff."""

    async def fetch_commits_since(
        self,
        owner: str,
        name: str,
        since: Optional[datetime] = None,
        limit: int = 50,
    ) -> List[SourceCommit]:
        """
        Commits in provider order, with files and diff filled in. A commit whose
        detail fetch fails is still returned, with no files and no diff.
        """
        commits = await self.list_commits(owner, name, since=since, limit=limit)
        details = await self.fetch_commit_details(owner, name, [c.hash for c in commits])
        for commit in commits:
            detail = details.get(commit.hash) or CommitDetail()
            commit.files_changed = detail.files_changed
            commit.diff = detail.diff
        return commits

    @abstractmethod
    async def fetch_commit_details(
        self, owner: str, name: str, hashes: Sequence[str]
    ) -> Dict[str, CommitDetail]:
        """
        Best-effort per-commit details, each request bounded on its own. Failed or
        timed-out hashes map to an empty detail.
        """

    @abstractmethod
    async def register_webhook(
        self, owner: str, name: str, callback_url: str, secret: str
    ) -> str: ...

    async def aclose(self) -> None:
        return None

    async def __aenter__(self) -> "ChangeSource":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


# (provider, credential) -> ChangeSource
ChangeSourceFactory = Callable[[str, Optional[str]], ChangeSource]
