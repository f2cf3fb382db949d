"""Async HTTP client for the chat API."""

import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000/api"


class ChatApiError(Exception):
    """Non-2xx response from the chat API."""

    def __init__(self, status_code: int, error: Optional[str] = None):
        super().__init__(error or f"HTTP {status_code}")
        self.status_code = status_code
        self.error = error


class ChatApiClient:
    def __init__(self, base_url: str = DEFAULT_BASE_URL, http_client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client or httpx.AsyncClient(timeout=120.0)

    async def aclose(self) -> None:
        await self.http_client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        response = await self.http_client.request(method, f"{self.base_url}{path}", **kwargs)
        if response.is_error:
            error = None
            try:
                body = response.json()
                if isinstance(body, dict):
                    error = body.get("error")
            except ValueError:
                pass
            logger.debug(f"{method} {path} failed: {response.status_code} {error}")
            raise ChatApiError(response.status_code, error)
        return response.json()

    async def list_chats(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/chats")

    async def get_chat(self, session_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/chats/{session_id}")

    async def create_chat(self) -> str:
        data = await self._request("POST", "/chats")
        return data["sessionId"]

    async def send_message(self, session_id: str, message: str) -> str:
        data = await self._request("POST", f"/chats/{session_id}/message", json={"message": message})
        return data["response"]

    async def delete_chat(self, session_id: str) -> None:
        await self._request("DELETE", f"/chats/{session_id}")
