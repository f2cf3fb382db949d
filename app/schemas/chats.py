"""Chat schemas for request/response validation."""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models.message import MessageRole


class CamelModel(BaseModel):
    """Schema serialized with camelCase keys, accepting either spelling on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageOut(CamelModel):
    """One message of a conversation."""

    role: MessageRole
    content: str
    timestamp: datetime


class ChatSummary(CamelModel):
    """Session projection used by the session list."""

    session_id: str = Field(..., description="Session identifier")
    created_at: datetime
    updated_at: datetime


class ChatSessionResponse(ChatSummary):
    """Full session document."""

    messages: List[MessageOut] = Field(default_factory=list)


class ChatCreateResponse(CamelModel):
    session_id: str
    message: str = "New chat session created"


class MessageRequest(BaseModel):
    """Body of a message post. Emptiness is checked by the handler so it maps to 400."""

    message: Optional[str] = Field(None, description="User message")


class MessageResponse(CamelModel):
    session_id: str
    response: str = Field(..., description="Assistant reply")
    message: str = "Message sent successfully"


class StatusMessage(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str = "OK"
    message: str = "Chatbot API is running"


class ProviderTestResponse(BaseModel):
    status: str = "success"
    message: str = "Groq API is working!"
    response: str
