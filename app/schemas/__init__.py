"""This file contains the schemas for the application."""
from app.schemas.chats import (
    ChatCreateResponse,
    ChatSessionResponse,
    ChatSummary,
    HealthResponse,
    MessageOut,
    MessageRequest,
    MessageResponse,
    ProviderTestResponse,
    StatusMessage,
)

__all__ = [
    "ChatCreateResponse",
    "ChatSessionResponse",
    "ChatSummary",
    "HealthResponse",
    "MessageOut",
    "MessageRequest",
    "MessageResponse",
    "ProviderTestResponse",
    "StatusMessage",
]
