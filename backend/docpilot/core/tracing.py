"""
Tracing Context - Task-local context management for pipeline runs.

Every ingestion run (webhook push, manual sync, scheduled sync) sets a
correlation id and the repository it works on, so that all log lines
emitted while processing that run can be filtered together.

Usage:
    TracingContext.set(
        correlation_id="abc-123",
        repo_id="6650f0...",
        pipeline_type="manual_sync",
    )

    # Narrow the context to the commit being processed
    TracingContext.set(commit_hash="9fceb02")

    # Generate correlation_id prefix for manual logging
    prefix = TracingContext.get_log_prefix()  # "[corr=abc-123]"

    TracingContext.clear()

contextvars are copied per asyncio task, so concurrent runs for different
repositories never see each other's values.
"""

from contextvars import ContextVar
from typing import Dict

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")
_repo_id: ContextVar[str] = ContextVar("repo_id", default="")
_commit_hash: ContextVar[str] = ContextVar("commit_hash", default="")
_pipeline_type: ContextVar[str] = ContextVar("pipeline_type", default="")


class TracingContext:
    """Task-local tracing context for ingestion runs."""

    @staticmethod
    def set(
        correlation_id: str = "",
        repo_id: str = "",
        commit_hash: str = "",
        pipeline_type: str = "",
    ) -> None:
        """Set tracing context for current execution."""
        if correlation_id:
            _correlation_id.set(correlation_id)
        if repo_id:
            _repo_id.set(repo_id)
        if commit_hash:
            _commit_hash.set(commit_hash)
        if pipeline_type:
            _pipeline_type.set(pipeline_type)

    @staticmethod
    def get() -> Dict[str, str]:
        """Get current tracing context as dict."""
        return {
            "correlation_id": _correlation_id.get(),
            "repo_id": _repo_id.get(),
            "commit_hash": _commit_hash.get(),
            "pipeline_type": _pipeline_type.get(),
        }

    @staticmethod
    def get_log_prefix() -> str:
        """Get a formatted prefix for manual logging."""
        corr_id = _correlation_id.get()
        if corr_id:
            return f"[corr={corr_id[:8]}]"
        return ""

    @staticmethod
    def clear_commit() -> None:
        _commit_hash.set("")

    @staticmethod
    def clear() -> None:
        """Clear all tracing context."""
        _correlation_id.set("")
        _repo_id.set("")
        _commit_hash.set("")
        _pipeline_type.set("")
