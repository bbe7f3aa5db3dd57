"""
On-demand analysis over stored history.

Each call gathers recent commits and reviewed documentation from the store,
asks the analysis engine, and writes an audit record. Engine failures
propagate as AnalysisUnavailable (503 at the API), except for ``ask``,
which always answers.
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from docpilot.dtos.analysis import ProcessImprovement, ReleaseNotes
from docpilot.entities import (
    AnalysisResult,
    AnalysisResultType,
    Commit,
    DocumentationSuggestion,
    SuggestionKind,
    SuggestionStatus,
)
from docpilot.repositories.interfaces import Store
from docpilot.services.analysis.engine import AnalysisEngine, CommitContext, DocContext
from docpilot.services.pipeline_exceptions import RepositoryNotFound

logger = logging.getLogger(__name__)

MISSING_DOCS_COMMIT_WINDOW = 30
RELEASE_NOTES_COMMIT_WINDOW = 50
ASK_REPOSITORY_WINDOW = 3
ASK_COMMITS_PER_REPOSITORY = 10

PRIORITY_CONFIDENCE = {"high": 90, "medium": 70, "low": 50}

# Suggestions a reviewer has kept, i.e. what counts as existing documentation
_KEPT = (SuggestionStatus.ACCEPTED.value, SuggestionStatus.MODIFIED.value)


def _commit_context(commit: Commit) -> CommitContext:
    return CommitContext(
        hash=commit.commit_hash,
        message=commit.message,
        author=commit.author,
        timestamp=commit.timestamp,
        files_changed=list(commit.files_changed),
    )


def _doc_context(suggestion: DocumentationSuggestion) -> DocContext:
    title = suggestion.function_name or suggestion.class_name or suggestion.file_name
    return DocContext(
        title=title,
        content=suggestion.suggested_content,
        path=suggestion.file_name,
    )


class InsightsService:
    def __init__(self, store: Store, analysis_engine: AnalysisEngine):
        self.store = store
        self.engine = analysis_engine

    async def _require_repository(self, repository_id: str):
        repository = await self.store.repositories.get(repository_id)
        if repository is None:
            raise RepositoryNotFound(repository_id)
        return repository

    async def _kept_docs(self, repository_id=None) -> List[DocumentationSuggestion]:
        kept: List[DocumentationSuggestion] = []
        for status in _KEPT:
            kept.extend(
                await self.store.suggestions.list(repository_id=repository_id, status=status)
            )
        kept.sort(key=lambda s: s.created_at, reverse=True)
        return kept

    async def detect_missing_documentation(
        self, repository_id: str
    ) -> Tuple[List[ProcessImprovement], List[DocumentationSuggestion]]:
        repository = await self._require_repository(repository_id)
        commits = await self.store.commits.list_since(
            repository.id, limit=MISSING_DOCS_COMMIT_WINDOW
        )
        docs = await self._kept_docs(repository.id)

        improvements = await self.engine.detect_process_improvements(
            [_commit_context(c) for c in commits], [_doc_context(d) for d in docs]
        )

        await self.store.analysis_results.create(
            AnalysisResult(
                repository_id=repository.id,
                type=AnalysisResultType.MISSING_DOCUMENTATION,
                content={
                    "commits_analyzed": len(commits),
                    "improvements": [item.model_dump() for item in improvements],
                },
            )
        )

        created = []
        for item in improvements:
            created.append(
                await self.store.suggestions.create(
                    DocumentationSuggestion(
                        repository_id=repository.id,
                        commit_id=None,
                        file_name=item.pattern,
                        suggested_content=f"{item.description}\n\n{item.recommendation}",
                        confidence=PRIORITY_CONFIDENCE.get(item.priority, 70),
                        kind=SuggestionKind.PROCESS,
                    )
                )
            )
        logger.info(
            "Missing documentation scan for %s: %d improvements",
            repository.full_name,
            len(improvements),
        )
        return improvements, created

    async def generate_release_notes(self, repository_id: str) -> ReleaseNotes:
        repository = await self._require_repository(repository_id)
        commits = await self.store.commits.list_since(
            repository.id, limit=RELEASE_NOTES_COMMIT_WINDOW
        )
        reviewed = [
            suggestion
            for suggestion in await self.store.suggestions.list(repository_id=repository.id)
            if suggestion.status != SuggestionStatus.PENDING.value
        ]

        notes = await self.engine.synthesize_release_notes(
            [_commit_context(c) for c in commits], [_doc_context(d) for d in reviewed]
        )
        await self.store.analysis_results.create(
            AnalysisResult(
                repository_id=repository.id,
                type=AnalysisResultType.RELEASE_NOTES,
                content=notes.model_dump(),
            )
        )
        return notes

    async def ask(self, question: str) -> str:
        repositories = await self.store.repositories.list()
        commits: List[Commit] = []
        for repository in repositories[:ASK_REPOSITORY_WINDOW]:
            commits.extend(
                await self.store.commits.list_since(
                    repository.id, limit=ASK_COMMITS_PER_REPOSITORY
                )
            )
        docs: Sequence[DocumentationSuggestion] = await self._kept_docs()
        return await self.engine.answer_question(
            question,
            [_commit_context(c) for c in commits],
            [_doc_context(d) for d in docs],
        )
