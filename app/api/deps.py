"""Request dependencies resolving the objects built in the application lifespan."""

from fastapi import Request

from app.services.chat_service import ChatService
from app.services.relay_service import ConversationRelay
from app.services.session_service import SessionStore


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_relay(request: Request) -> ConversationRelay:
    return request.app.state.relay


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service
