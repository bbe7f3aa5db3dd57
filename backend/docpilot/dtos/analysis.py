"""
Typed shapes of analysis-model output.

Model responses are validated against these at the boundary; anything that
does not fit is treated as "no usable output". Field names accept both the
snake_case keys requested in the prompts and the camelCase keys models tend
to fall back to.
"""

from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _clamp_confidence(value) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"confidence must be a number, got {type(value).__name__}")
    number = float(value)
    # Some models answer on a 0-1 scale
    if 0 < number <= 1 and not float(number).is_integer():
        number *= 100
    return int(round(min(100.0, max(0.0, number))))


def _normalize_choice(value, choices, default: str) -> str:
    if not isinstance(value, str):
        return default
    value = value.strip().lower()
    return value if value in choices else default


class SuggestedDocumentation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    function_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("function_name", "functionName")
    )
    class_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("class_name", "className")
    )
    file_name: str = Field(validation_alias=AliasChoices("file_name", "fileName"))
    suggested_content: str = Field(
        validation_alias=AliasChoices("suggested_content", "suggestedContent")
    )
    confidence: int = 0
    kind: Literal["function", "class", "module", "api"] = Field(
        default="module", validation_alias=AliasChoices("kind", "type")
    )

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, value):
        return _clamp_confidence(value)

    @field_validator("kind", mode="before")
    @classmethod
    def normalize_kind(cls, value):
        return _normalize_choice(value, ("function", "class", "module", "api"), "module")


class CommitAnalysis(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    summary: str
    description: str = Field(
        default="",
        validation_alias=AliasChoices("description", "changes_description", "changesDescription"),
    )
    suggestions: List[SuggestedDocumentation] = Field(
        default_factory=list,
        validation_alias=AliasChoices(
            "suggestions", "missing_documentation", "missingDocumentation"
        ),
    )
    overall_confidence: int = Field(
        default=0,
        validation_alias=AliasChoices("overall_confidence", "overallConfidence", "confidence"),
    )

    @field_validator("overall_confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, value):
        return _clamp_confidence(value)


class ProcessImprovement(BaseModel):
    pattern: str
    description: str
    recommendation: str
    priority: Literal["low", "medium", "high"] = "medium"

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_priority(cls, value):
        return _normalize_choice(value, ("low", "medium", "high"), "medium")


class ReleaseNotes(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    version: str
    summary: str
    features: List[str] = Field(default_factory=list)
    bug_fixes: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices("bug_fixes", "bugFixes")
    )
    breaking_changes: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("breaking_changes", "breakingChanges"),
    )
    docs: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices("docs", "documentation")
    )
