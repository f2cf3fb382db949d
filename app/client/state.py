"""Client-side view state and the actions that drive it."""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional

import httpx

from app.client.api_client import ChatApiClient, ChatApiError

logger = logging.getLogger(__name__)

WAIT_SECONDS_PATTERN = re.compile(r"(\d+)s")
RATE_LIMIT_MARKER = "Rate limit exceeded"


def parse_wait_seconds(error_text: str) -> Optional[int]:
    """Seconds to wait, as embedded in a server rate-limit message."""
    if not error_text or RATE_LIMIT_MARKER not in error_text:
        return None
    match = WAIT_SECONDS_PATTERN.search(error_text)
    return int(match.group(1)) if match else None


def rate_limit_text(seconds: int) -> str:
    return f"Rate limit exceeded. Please wait {seconds}s before trying again."


@dataclass
class ChatViewState:
    """What the chat screen shows at any moment."""

    sessions: List[Dict[str, Any]] = field(default_factory=list)
    current_session: Optional[str] = None
    messages: List[Dict[str, Any]] = field(default_factory=list)
    loading: bool = False
    error: str = ""
    countdown: int = 0

    @property
    def display_error(self) -> str:
        if self.countdown > 0:
            return rate_limit_text(self.countdown)
        return self.error

    def can_send(self, text: str) -> bool:
        return bool(text.strip()) and bool(self.current_session) and not self.loading and self.countdown == 0

    def tick(self) -> None:
        """Advance the rate-limit countdown by one second."""
        if self.countdown <= 0:
            return
        if self.countdown <= 1:
            self.error = ""
            self.countdown = 0
        else:
            self.countdown -= 1

    def apply_send_error(self, status_code: Optional[int], error_text: Optional[str]) -> None:
        if error_text:
            seconds = parse_wait_seconds(error_text)
            if seconds is not None:
                self.countdown = seconds
                self.error = rate_limit_text(seconds)
            else:
                self.error = error_text
        elif status_code == 429:
            self.error = "Rate limit exceeded. Please wait a moment before trying again."
        elif status_code == 401:
            self.error = "API key error. Please check your configuration."
        else:
            self.error = "Failed to send message. Please try again."


class ChatController:
    """
    Actions behind the chat screen.

    The session list is re-fetched after every create, delete and send so it
    mirrors the server.
    """

    def __init__(self, api: ChatApiClient, state: Optional[ChatViewState] = None):
        self.api = api
        self.state = state or ChatViewState()

    async def refresh_sessions(self) -> None:
        try:
            self.state.sessions = await self.api.list_chats()
        except ChatApiError as e:
            logger.error(f"Error fetching sessions: {e}")
            self.state.error = "Failed to load chat sessions"

    async def load_history(self) -> None:
        if not self.state.current_session:
            return
        try:
            chat = await self.api.get_chat(self.state.current_session)
            self.state.messages = chat.get("messages") or []
        except ChatApiError as e:
            logger.error(f"Error fetching chat history: {e}")
            self.state.error = "Failed to load chat history"

    async def create_chat(self) -> None:
        self.state.loading = True
        try:
            self.state.current_session = await self.api.create_chat()
            self.state.messages = []
            self.state.error = ""
            await self.refresh_sessions()
        except ChatApiError as e:
            logger.error(f"Error creating new chat: {e}")
            self.state.error = "Failed to create new chat session"
        finally:
            self.state.loading = False

    async def select_session(self, session_id: str) -> None:
        self.state.current_session = session_id
        self.state.error = ""
        await self.load_history()

    async def send_message(self, text: str) -> bool:
        if not self.state.can_send(text):
            return False

        content = text.strip()
        self.state.loading = True
        self.state.error = ""
        try:
            reply = await self.api.send_message(self.state.current_session, content)
            now = datetime.now(UTC).isoformat()
            self.state.messages = [
                *self.state.messages,
                {"role": "user", "content": content, "timestamp": now},
                {"role": "assistant", "content": reply, "timestamp": now},
            ]
            await self.refresh_sessions()
            return True
        except ChatApiError as e:
            logger.error(f"Error sending message: {e}")
            self.state.apply_send_error(e.status_code, e.error)
            return False
        except httpx.HTTPError as e:
            logger.error(f"Error sending message: {e}")
            self.state.apply_send_error(None, None)
            return False
        finally:
            self.state.loading = False

    async def delete_session(self, session_id: str) -> None:
        try:
            await self.api.delete_chat(session_id)
            if self.state.current_session == session_id:
                self.state.current_session = None
                self.state.messages = []
            await self.refresh_sessions()
        except ChatApiError as e:
            logger.error(f"Error deleting session: {e}")
            self.state.error = "Failed to delete chat session"
