"""ChatMessage entity - one turn of the assistant conversation."""

from docpilot.entities.base import BaseEntity


class ChatMessage(BaseEntity):
    message: str
    is_from_user: bool
