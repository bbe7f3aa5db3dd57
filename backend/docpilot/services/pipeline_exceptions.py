"""Custom exceptions for the ingestion pipeline."""
from __future__ import annotations


class PipelineError(Exception):
    """Base exception for pipeline failures."""


class InvalidLocator(PipelineError):
    """Raised when a repository URL cannot be parsed into owner/name."""

    def __init__(self, locator: str, reason: str = "Invalid Git URL format"):
        super().__init__(f"{reason}: {locator}")
        self.locator = locator


class MissingCredential(PipelineError):
    """Raised when the provider needs an access token and none is stored."""


class RepositoryNotFound(PipelineError):
    """Raised when a repository id (or webhook full name) does not resolve."""

    def __init__(self, identifier: str):
        super().__init__(f"Repository not found: {identifier}")
        self.identifier = identifier


class RepositoryAlreadyRegistered(PipelineError):
    """Raised when an active repository already tracks the same locator."""

    def __init__(self, full_name: str):
        super().__init__(f"Repository already registered: {full_name}")
        self.full_name = full_name


class SuggestionNotFound(PipelineError):
    def __init__(self, suggestion_id: str):
        super().__init__(f"Documentation suggestion not found: {suggestion_id}")
        self.suggestion_id = suggestion_id


class InvalidStatusTransition(PipelineError):
    """Raised when a review asks for a status the suggestion cannot move to."""


class AnalysisUnavailable(PipelineError):
    """Raised when the analysis model returns no usable output."""


class AdapterUnavailable(PipelineError):
    """Raised on network or auth failures talking to the hosting provider."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SignatureInvalid(PipelineError):
    """Raised when a webhook signature does not match the request body."""
