"""Chat session API routes."""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_chat_service, get_session_store
from app.schemas.chats import (
    ChatCreateResponse,
    ChatSessionResponse,
    ChatSummary,
    MessageRequest,
    MessageResponse,
    StatusMessage,
)
from app.services.chat_service import ChatService, EmptyMessageError
from app.services.relay_service import RelayError, RelayErrorKind
from app.services.session_service import SessionNotFoundError, SessionStore

logger = logging.getLogger(__name__)
router = APIRouter(tags=["chats"])

SESSION_NOT_FOUND = "Chat session not found"


def relay_error_to_http(error: RelayError) -> HTTPException:
    """Translate a relay failure into the client-facing status and message."""
    if error.kind == RelayErrorKind.RATE_LIMITED:
        wait = f"{error.retry_after}s" if error.retry_after is not None else "a moment"
        return HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Rate limit exceeded. Please wait {wait} before trying again.",
        )
    if error.kind == RelayErrorKind.AUTHENTICATION:
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid Groq API key")
    if error.kind == RelayErrorKind.MODEL_NOT_FOUND:
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="AI model not found. Please check your API configuration.",
        )
    if error.kind == RelayErrorKind.NOT_CONFIGURED:
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Groq API key not configured")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Failed to process message. Please try again later.",
    )


@router.get("", response_model=List[ChatSummary])
async def list_chats(store: SessionStore = Depends(get_session_store)) -> List[ChatSummary]:
    """Get all chat sessions, most recently updated first."""
    try:
        sessions = await store.list_sessions()
        logger.info(f"Successfully retrieved {len(sessions)} chat sessions")
        return sessions
    except Exception as e:
        logger.error(f"Unexpected error in list_chats: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch chat sessions",
        )


@router.get("/{session_id}", response_model=ChatSessionResponse)
async def get_chat(session_id: str, store: SessionStore = Depends(get_session_store)):
    """Get one chat session with its full message history."""
    try:
        session = await store.get_session(session_id)
        return session.to_mongo()
    except SessionNotFoundError:
        logger.warning(f"Chat session not found: {session_id}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=SESSION_NOT_FOUND)
    except Exception as e:
        logger.error(f"Unexpected error in get_chat: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch chat session",
        )


@router.post("", response_model=ChatCreateResponse)
async def create_chat(store: SessionStore = Depends(get_session_store)) -> ChatCreateResponse:
    """Create a new, empty chat session."""
    try:
        session = await store.create_session()
        return ChatCreateResponse(session_id=session.session_id)
    except Exception as e:
        logger.error(f"Unexpected error in create_chat: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create chat session",
        )


@router.post("/{session_id}/message", response_model=MessageResponse)
async def send_message(
    session_id: str,
    body: Optional[MessageRequest] = None,
    chat_service: ChatService = Depends(get_chat_service),
) -> MessageResponse:
    """
    Send a user message and return the assistant reply.

    The user message is stored before the provider is called and stays stored
    when the call fails. Unknown session ids are created on the fly.
    """
    try:
        outcome = await chat_service.send_message(session_id, body.message if body else None)
    except EmptyMessageError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected error in send_message: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process message. Please try again later.",
        )

    if not outcome.ok:
        raise relay_error_to_http(outcome.error)

    return MessageResponse(session_id=session_id, response=outcome.reply)


@router.delete("/{session_id}", response_model=StatusMessage)
async def delete_chat(session_id: str, store: SessionStore = Depends(get_session_store)) -> StatusMessage:
    """Delete a chat session."""
    try:
        await store.delete_session(session_id)
        return StatusMessage(message="Chat session deleted successfully")
    except SessionNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=SESSION_NOT_FOUND)
    except Exception as e:
        logger.error(f"Unexpected error in delete_chat: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete chat session",
        )
