"""Repository for assistant chat history."""

from typing import List

from pymongo.asynchronous.database import AsyncDatabase

from docpilot.entities import ChatMessage

from .base import BaseRepository
from .interfaces import ChatMessageStore


class ChatMessageRepository(BaseRepository[ChatMessage], ChatMessageStore):
    def __init__(self, db: AsyncDatabase):
        super().__init__(db, "chat_messages", ChatMessage)

    async def create(self, message: ChatMessage) -> ChatMessage:
        return await self.insert_one(message)

    async def list_recent(self, limit: int = 20) -> List[ChatMessage]:
        return await self.find_many({}, sort=[("created_at", -1), ("_id", -1)], limit=limit)
