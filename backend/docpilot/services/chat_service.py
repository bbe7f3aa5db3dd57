"""Assistant conversation kept in storage."""

import logging
from typing import List

from docpilot.entities import ChatMessage
from docpilot.repositories.interfaces import Store
from docpilot.services.insights_service import InsightsService

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 20


class ChatService:
    def __init__(self, store: Store, insights: InsightsService):
        self.store = store
        self.insights = insights

    async def history(self, limit: int = HISTORY_LIMIT) -> List[ChatMessage]:
        """The latest ``limit`` messages, oldest first."""
        recent = await self.store.chat_messages.list_recent(limit)
        return list(reversed(recent))

    async def send(self, message: str) -> ChatMessage:
        """Store the question, answer it, store and return the answer."""
        await self.store.chat_messages.create(ChatMessage(message=message, is_from_user=True))
        answer = await self.insights.ask(message)
        reply = await self.store.chat_messages.create(
            ChatMessage(message=answer, is_from_user=False)
        )
        logger.info("Answered chat message %s", reply.id_str)
        return reply
