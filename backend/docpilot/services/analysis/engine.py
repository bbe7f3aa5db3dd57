"""Analysis engine contract consumed by the ingestion pipeline and the API."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Sequence

from docpilot.dtos.analysis import CommitAnalysis, ProcessImprovement, ReleaseNotes

FALLBACK_ANSWER = "I couldn't generate a response to your question."


@dataclass
class CommitContext:
    hash: str
    message: str
    author: str
    timestamp: datetime
    files_changed: List[str] = field(default_factory=list)


@dataclass
class DocContext:
    title: str
    content: str
    path: str


class AnalysisEngine(ABC):
    @abstractmethod
    async def analyze_commit(
        self, message: str, diff: str, changed_files: Sequence[str]
    ) -> CommitAnalysis:
        """Raises AnalysisUnavailable when the model gives no usable output."""

    @abstractmethod
    async def detect_process_improvements(
        self, commits: Sequence[CommitContext], existing_docs: Sequence[DocContext]
    ) -> List[ProcessImprovement]: ...

    @abstractmethod
    async def synthesize_release_notes(
        self, commits: Sequence[CommitContext], doc_updates: Sequence[DocContext]
    ) -> ReleaseNotes: ...

    @abstractmethod
    async def answer_question(
        self,
        question: str,
        commits: Sequence[CommitContext],
        docs: Sequence[DocContext],
    ) -> str:
        """Never raises; returns FALLBACK_ANSWER on failure."""
