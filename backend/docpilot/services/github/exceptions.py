"""GitHub-specific failures, all reported to the pipeline as AdapterUnavailable."""

from __future__ import annotations

from docpilot.services.pipeline_exceptions import AdapterUnavailable


class GithubAuthError(AdapterUnavailable):
    """Raised when the stored access token is rejected (401)."""


class GithubRateLimitError(AdapterUnavailable):
    """Raised when the upstream service enforces a rate limit."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        retry_after: int | float | None = None,
    ):
        super().__init__(message, status_code=status_code)
        self.retry_after = retry_after
