"""Message exchange: persist the user turn, relay the conversation, persist the reply."""

import asyncio
import logging
import weakref
from dataclasses import dataclass
from typing import Optional

from app.models.message import Message, MessageRole
from app.models.session import ChatSession
from app.services.relay_service import ConversationRelay, RelayError, RelayErrorKind
from app.services.session_service import SessionStore

logger = logging.getLogger(__name__)


class EmptyMessageError(ValueError):
    """Raised for missing or whitespace-only user input."""

    def __init__(self):
        super().__init__("Message is required")


@dataclass
class ExchangeOutcome:
    """
    Result of one message exchange.

    On failure ``error`` is set. ``user_message_persisted`` tells whether the
    user turn was stored anyway; it is never rolled back.
    """

    session_id: str
    session: Optional[ChatSession] = None
    reply: Optional[str] = None
    error: Optional[RelayError] = None
    user_message_persisted: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


class ChatService:
    """Runs exchanges, serializing them per session within this process."""

    def __init__(self, store: SessionStore, relay: ConversationRelay):
        self.store = store
        self.relay = relay
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    async def send_message(self, session_id: str, text: Optional[str]) -> ExchangeOutcome:
        if not text or not text.strip():
            raise EmptyMessageError()

        if not self.relay.is_configured:
            return ExchangeOutcome(
                session_id=session_id,
                error=RelayError(kind=RelayErrorKind.NOT_CONFIGURED, message="Groq API key not configured"),
            )

        async with self._lock_for(session_id):
            session = await self.store.append_messages(
                session_id, Message(role=MessageRole.USER, content=text)
            )
            logger.info(f"Stored user message for session {session_id} ({len(session.messages)} messages)")

            result = await self.relay.complete(session.history())
            if not result.ok:
                logger.warning(
                    f"Reply failed for session {session_id} after storing the user message: "
                    f"{result.error.kind.value}"
                )
                return ExchangeOutcome(
                    session_id=session_id,
                    session=session,
                    error=result.error,
                    user_message_persisted=True,
                )

            session = await self.store.append_messages(
                session_id, Message(role=MessageRole.ASSISTANT, content=result.reply)
            )

        return ExchangeOutcome(
            session_id=session_id,
            session=session,
            reply=result.reply,
            user_message_persisted=True,
        )
