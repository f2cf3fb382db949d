"""This file contains the chat session model for the application."""

import uuid
from datetime import datetime
from typing import List
from pydantic import Field

from app.models.base import BaseModel, utc_now
from app.models.message import Message


def new_session_id() -> str:
    """Generate a collision-resistant session identifier."""
    return str(uuid.uuid4())


class ChatSession(BaseModel):
    """Chat session document.

    Attributes:
        session_id: Opaque unique identifier (stored as ``sessionId``)
        messages: Conversation in insertion order
        created_at: When the session was created
        updated_at: When the session last changed
    """

    session_id: str = Field(default_factory=new_session_id)
    messages: List[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def history(self) -> List[dict]:
        return [message.to_provider() for message in self.messages]
