"""
Commit ingestion pipeline.

Two entry points feed the same per-commit loop:

- ``sync_repository``: manual or scheduled poll. Asks the change source for
  commits since the repository watermark (``last_sync_at``, or
  ``SYNC_LOOKBACK_HOURS`` ago when it never synced).
- ``ingest_push``: webhook push. Uses the commits embedded in the payload
  and fetches their diffs best-effort.

Per commit, in the order received:

    unseen -> stored -> analyzed-with-suggestions | analyzed-empty | analysis-skipped

A commit already stored is skipped without re-analysis. A failed analysis
is logged, audited, and contributes no suggestions; it never stops the
batch. The watermark moves only once the whole batch has been walked, so a
cancelled run leaves it untouched. Analysis is at-most-once: a commit whose
analysis failed is not retried by later runs.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import asdict, dataclass
from datetime import timedelta
from typing import List, Optional

from docpilot.config import settings
from docpilot.core.tracing import TracingContext
from docpilot.dtos.webhook import PushEvent
from docpilot.entities import (
    AnalysisResult,
    AnalysisResultType,
    Commit,
    DocumentationSuggestion,
    Repository,
)
from docpilot.repositories.interfaces import Store
from docpilot.services.analysis.engine import AnalysisEngine
from docpilot.services.change_source import (
    ChangeSource,
    ChangeSourceFactory,
    SourceCommit,
)
from docpilot.services.pipeline_exceptions import (
    AdapterUnavailable,
    AnalysisUnavailable,
    MissingCredential,
    RepositoryNotFound,
)
from docpilot.services.repo_locks import RepositoryLocks
from docpilot.utils.datetime import parse_datetime, utc_now
from docpilot.utils.text import truncate

logger = logging.getLogger(__name__)


@dataclass
class IngestionSummary:
    repository_id: str
    commits_processed: int = 0  # every candidate, duplicates included
    new_commits: int = 0
    duplicates: int = 0
    analyzed: int = 0
    analysis_skipped: int = 0
    analysis_failed: int = 0
    suggestions_created: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class IngestionPipeline:
    def __init__(
        self,
        store: Store,
        change_source_factory: ChangeSourceFactory,
        analysis_engine: AnalysisEngine,
        locks: Optional[RepositoryLocks] = None,
        *,
        lookback_hours: Optional[int] = None,
        fetch_limit: Optional[int] = None,
        call_timeout: Optional[float] = None,
        diff_max_chars: Optional[int] = None,
    ):
        self.store = store
        self.change_source_factory = change_source_factory
        self.engine = analysis_engine
        self.locks = locks or RepositoryLocks()
        self.lookback = timedelta(hours=lookback_hours or settings.SYNC_LOOKBACK_HOURS)
        self.fetch_limit = fetch_limit or settings.COMMIT_FETCH_LIMIT
        self.call_timeout = call_timeout or settings.EXTERNAL_CALL_TIMEOUT_SECONDS
        self.diff_max_chars = diff_max_chars or settings.DIFF_MAX_CHARS

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------
    async def sync_repository(
        self, repository_id: str, pipeline_type: str = "manual_sync"
    ) -> IngestionSummary:
        repository = await self._resolve_by_id(repository_id)
        async with self.locks.hold(repository.id_str):
            # Re-read under the lock: a run we waited on may have moved the watermark
            repository = await self._resolve_by_id(repository_id)
            self._start_trace(repository, pipeline_type)
            try:
                since = repository.last_sync_at or (utc_now() - self.lookback)
                async with self._open_source(repository) as source:
                    candidates = await self._adapter_call(
                        source.list_commits(
                            repository.owner,
                            repository.repo_name,
                            since=since,
                            limit=self.fetch_limit,
                        ),
                        "list commits",
                    )
                    await self._attach_diffs(repository, source, candidates)
                logger.info(
                    "Syncing %s: %d candidate commits since %s",
                    repository.full_name,
                    len(candidates),
                    since.isoformat(),
                )
                return await self._run(repository, candidates)
            finally:
                TracingContext.clear()

    async def ingest_push(self, event: PushEvent) -> IngestionSummary:
        full_name = event.repository.full_name
        repository = await self.store.repositories.find_active_by_full_name(full_name)
        if repository is None:
            logger.info("Push for unregistered repository %s", full_name)
            raise RepositoryNotFound(full_name)
        self._require_credential(repository)

        async with self.locks.hold(repository.id_str):
            self._start_trace(repository, "webhook_push")
            try:
                candidates = [
                    SourceCommit(
                        hash=item.id,
                        message=item.message,
                        author=item.author.name,
                        author_email=item.author.email or "",
                        timestamp=parse_datetime(item.timestamp),
                        files_changed=item.files_changed,
                    )
                    for item in event.commits
                ]
                async with self._open_source(repository) as source:
                    await self._attach_diffs(repository, source, candidates)
                logger.info(
                    "Push to %s with %d commits", repository.full_name, len(candidates)
                )
                return await self._run(repository, candidates)
            finally:
                TracingContext.clear()

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------
    async def _resolve_by_id(self, repository_id: str) -> Repository:
        repository = await self.store.repositories.get(repository_id)
        if repository is None or not repository.is_active:
            raise RepositoryNotFound(str(repository_id))
        self._require_credential(repository)
        return repository

    @staticmethod
    def _require_credential(repository: Repository) -> None:
        if not repository.credential_value():
            raise MissingCredential(
                f"Repository {repository.full_name} has no access token"
            )

    def _open_source(self, repository: Repository) -> ChangeSource:
        return self.change_source_factory(
            repository.provider, repository.credential_value()
        )

    @staticmethod
    def _start_trace(repository: Repository, pipeline_type: str) -> None:
        TracingContext.set(
            correlation_id=str(uuid.uuid4()),
            repo_id=repository.id_str,
            pipeline_type=pipeline_type,
        )

    async def _adapter_call(self, coro, what: str):
        try:
            return await asyncio.wait_for(coro, timeout=self.call_timeout)
        except asyncio.TimeoutError as exc:
            raise AdapterUnavailable(
                f"Timed out after {self.call_timeout}s: {what}"
            ) from exc

    async def _attach_diffs(
        self,
        repository: Repository,
        source: ChangeSource,
        candidates: List[SourceCommit],
    ) -> None:
        """
        Fill diffs for candidates not stored yet. Each detail request is bounded
        inside the source; a failed one leaves its commit without a diff.
        """
        known = await self.store.commits.existing_hashes(
            repository.id, [c.hash for c in candidates]
        )
        missing = list(dict.fromkeys(c.hash for c in candidates if c.hash not in known))
        if not missing:
            return
        try:
            details = await source.fetch_commit_details(
                repository.owner, repository.repo_name, missing
            )
        except AdapterUnavailable as exc:
            logger.warning(
                "Could not fetch diffs for %d commits: %s", len(missing), exc
            )
            return

        for candidate in candidates:
            detail = details.get(candidate.hash)
            if detail is None:
                continue
            candidate.diff = detail.diff
            if not candidate.files_changed:
                candidate.files_changed = detail.files_changed

    # ------------------------------------------------------------------
    # Per-commit loop
    # ------------------------------------------------------------------
    async def _run(
        self, repository: Repository, candidates: List[SourceCommit]
    ) -> IngestionSummary:
        summary = IngestionSummary(repository_id=repository.id_str)
        for candidate in candidates:
            summary.commits_processed += 1
            TracingContext.set(commit_hash=candidate.hash[:12])
            try:
                await self._process_commit(repository, candidate, summary)
            finally:
                TracingContext.clear_commit()

        await self.store.repositories.mark_synced(repository.id, utc_now())
        logger.info(
            "Ingestion of %s finished: %d processed, %d new, %d analyzed, "
            "%d analysis failures, %d suggestions",
            repository.full_name,
            summary.commits_processed,
            summary.new_commits,
            summary.analyzed,
            summary.analysis_failed,
            summary.suggestions_created,
        )
        return summary

    async def _process_commit(
        self,
        repository: Repository,
        candidate: SourceCommit,
        summary: IngestionSummary,
    ) -> None:
        commit, is_new = await self.store.commits.upsert(
            repository.id,
            Commit(
                repository_id=repository.id,
                commit_hash=candidate.hash,
                message=candidate.message,
                author=candidate.author or "Unknown",
                author_email=candidate.author_email or None,
                timestamp=candidate.timestamp,
                files_changed=list(candidate.files_changed),
                diff=truncate(candidate.diff, self.diff_max_chars) or None,
            ),
        )
        if not is_new:
            summary.duplicates += 1
            return
        summary.new_commits += 1

        if not commit.is_analyzable:
            summary.analysis_skipped += 1
            logger.debug("Commit %s has no diff to analyze", commit.commit_hash)
            return

        try:
            analysis = await asyncio.wait_for(
                self.engine.analyze_commit(
                    commit.message, commit.diff, commit.files_changed
                ),
                timeout=self.call_timeout,
            )
        except (AnalysisUnavailable, asyncio.TimeoutError) as exc:
            summary.analysis_failed += 1
            reason = str(exc) or "analysis timed out"
            logger.warning("Failed to analyze commit %s: %s", commit.commit_hash, reason)
            await self.store.analysis_results.create(
                AnalysisResult(
                    repository_id=repository.id,
                    type=AnalysisResultType.COMMIT_ANALYSIS_FAILED,
                    content={"commit_hash": commit.commit_hash, "error": reason},
                )
            )
            return

        for suggestion in analysis.suggestions:
            await self.store.suggestions.create(
                DocumentationSuggestion(
                    repository_id=repository.id,
                    commit_id=commit.id,
                    function_name=suggestion.function_name,
                    class_name=suggestion.class_name,
                    file_name=suggestion.file_name,
                    suggested_content=suggestion.suggested_content,
                    confidence=suggestion.confidence,
                    kind=suggestion.kind,
                )
            )
            summary.suggestions_created += 1

        await self.store.analysis_results.create(
            AnalysisResult(
                repository_id=repository.id,
                type=AnalysisResultType.COMMIT_ANALYSIS,
                content={
                    "commit_hash": commit.commit_hash,
                    "summary": analysis.summary,
                    "description": analysis.description,
                    "confidence": analysis.overall_confidence,
                    "suggestions": len(analysis.suggestions),
                },
            )
        )
        summary.analyzed += 1
