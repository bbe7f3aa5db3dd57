"""DTOs for the persisted assistant conversation."""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from docpilot.entities import ChatMessage, PyObjectIdStr


class ChatMessageResponse(BaseModel):
    id: PyObjectIdStr
    message: str
    is_from_user: bool
    created_at: datetime

    @classmethod
    def from_entity(cls, message: ChatMessage) -> "ChatMessageResponse":
        return cls.model_validate(message.model_dump())


class ChatHistoryResponse(BaseModel):
    items: List[ChatMessageResponse]


class ChatMessageRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)


class ChatReplyResponse(BaseModel):
    message: ChatMessageResponse
