"""This file contains the message model for the application."""

from datetime import datetime
from enum import Enum
from pydantic import Field

from app.models.base import BaseModel, utc_now


class MessageRole(str, Enum):
    """Author of a message."""
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """A single turn of a conversation.

    Attributes:
        role: Either ``user`` or ``assistant``
        content: Text of the message
        timestamp: When the message was appended
    """

    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=utc_now)

    def to_provider(self) -> dict:
        """Role/content pair in the chat-completions format."""
        return {"role": self.role, "content": self.content}
