"""
Commit Entity - append-only record of an ingested commit.

(repository_id, commit_hash) is unique. Once stored a commit is never
modified; re-ingesting the same hash is a no-op.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from docpilot.entities.base import BaseEntity, PyObjectId


class Commit(BaseEntity):
    repository_id: PyObjectId = Field(..., description="Owning repository")
    commit_hash: str = Field(..., description="Provider commit identifier (SHA)")
    message: str
    author: str = "Unknown"
    author_email: Optional[str] = None
    timestamp: datetime = Field(..., description="Authoring time")
    files_changed: List[str] = Field(default_factory=list)
    diff: Optional[str] = Field(
        default=None,
        description="Concatenated file patches, truncated at fetch time",
    )

    @property
    def is_analyzable(self) -> bool:
        return bool(self.diff) and bool(self.files_changed)
