"""Persisted assistant conversation."""

from fastapi import APIRouter, Depends

from docpilot.api.deps import get_chat_service
from docpilot.dtos import (
    ChatHistoryResponse,
    ChatMessageRequest,
    ChatMessageResponse,
    ChatReplyResponse,
)
from docpilot.services.chat_service import ChatService

router = APIRouter(prefix="/chat", tags=["Assistant"])


@router.get("/messages", response_model=ChatHistoryResponse)
async def list_messages(service: ChatService = Depends(get_chat_service)):
    messages = await service.history()
    return ChatHistoryResponse(items=[ChatMessageResponse.from_entity(m) for m in messages])


@router.post("/messages", response_model=ChatReplyResponse)
async def send_message(
    payload: ChatMessageRequest,
    service: ChatService = Depends(get_chat_service),
):
    reply = await service.send(payload.message)
    return ChatReplyResponse(message=ChatMessageResponse.from_entity(reply))
