"""DTOs for on-demand analysis: audit records, release notes and Q&A."""

from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from docpilot.dtos.analysis import ProcessImprovement
from docpilot.dtos.suggestion import SuggestionResponse
from docpilot.entities import AnalysisResult, AnalysisResultType, PyObjectIdStr


class AnalysisResultResponse(BaseModel):
    id: PyObjectIdStr
    repository_id: PyObjectIdStr
    type: AnalysisResultType
    content: Dict[str, Any]
    created_at: datetime

    @classmethod
    def from_entity(cls, result: AnalysisResult) -> "AnalysisResultResponse":
        return cls.model_validate(result.model_dump())


class MissingDocumentationResponse(BaseModel):
    improvements: List[ProcessImprovement]
    suggestions: List[SuggestionResponse]


class AskRequest(BaseModel):
    question: str = Field(..., min_length=1, max_length=4000)


class AskResponse(BaseModel):
    answer: str
