"""DTOs for commit history."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from docpilot.entities import Commit, PyObjectIdStr


class CommitResponse(BaseModel):
    id: PyObjectIdStr
    repository_id: PyObjectIdStr
    commit_hash: str
    message: str
    author: str
    author_email: Optional[str]
    timestamp: datetime
    files_changed: List[str]
    diff: Optional[str] = None

    @classmethod
    def from_entity(cls, commit: Commit, include_diff: bool = False) -> "CommitResponse":
        payload = commit.model_dump()
        if not include_diff:
            payload["diff"] = None
        return cls.model_validate(payload)


class CommitListResponse(BaseModel):
    items: List[CommitResponse]
    total: int
