"""AnalysisResult entity - write-once audit record of an analysis invocation."""

from enum import Enum
from typing import Any, Dict

from pydantic import Field

from docpilot.entities.base import BaseEntity, PyObjectId


class AnalysisResultType(str, Enum):
    COMMIT_ANALYSIS = "commit_analysis"
    COMMIT_ANALYSIS_FAILED = "commit_analysis_failed"
    MISSING_DOCUMENTATION = "missing_documentation"
    RELEASE_NOTES = "release_notes"


class AnalysisResult(BaseEntity):
    repository_id: PyObjectId
    type: AnalysisResultType
    content: Dict[str, Any] = Field(default_factory=dict)
