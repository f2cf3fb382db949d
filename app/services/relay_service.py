"""Service for relaying a conversation to the Groq chat-completions API."""

import logging
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx

from app.config.settings import Settings

logger = logging.getLogger(__name__)

NO_RESPONSE = "No response generated"

# "Please try again in 7.66s", "try again in 1m30.5s", "try again in 2m", "try again in 460ms"
RETRY_HINT_PATTERN = re.compile(
    r"try again in\s+(?:(?P<hours>\d+)h)?(?:(?P<minutes>\d+)m(?!s))?(?:(?P<seconds>\d+(?:\.\d+)?)s)?(?:(?P<millis>\d+(?:\.\d+)?)ms)?",
    re.I,
)


class RelayErrorKind(str, Enum):
    """Classification of a failed relay call."""
    AUTHENTICATION = "authentication"
    RATE_LIMITED = "rate_limited"
    MODEL_NOT_FOUND = "model_not_found"
    NOT_CONFIGURED = "not_configured"
    FAILED = "failed"


@dataclass
class RelayError:
    kind: RelayErrorKind
    message: str
    status_code: Optional[int] = None
    retry_after: Optional[int] = None


@dataclass
class RelayResult:
    """Either a generated reply or the error that prevented it."""

    reply: Optional[str] = None
    error: Optional[RelayError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_retry_after(message: str, header: Optional[str] = None) -> Optional[int]:
    """
    Extract a suggested wait in whole seconds.

    The ``Retry-After`` header wins when it is a number; otherwise the provider's
    free-text message is scanned for "try again in ..." and rounded up.
    """
    if header:
        try:
            return max(0, math.ceil(float(header)))
        except ValueError:
            pass

    match = RETRY_HINT_PATTERN.search(message or "")
    if not match or not any(match.groupdict().values()):
        return None

    total = (
        int(match.group("hours") or 0) * 3600
        + int(match.group("minutes") or 0) * 60
        + float(match.group("seconds") or 0)
        + float(match.group("millis") or 0) / 1000
    )
    return math.ceil(total)


def classify_failure(status_code: Optional[int], message: str, retry_header: Optional[str] = None) -> RelayError:
    """Map a provider failure onto the relay error taxonomy."""
    if status_code == 429:
        return RelayError(
            kind=RelayErrorKind.RATE_LIMITED,
            message=message,
            status_code=status_code,
            retry_after=parse_retry_after(message, retry_header),
        )
    if status_code == 401 or (message and "API key" in message):
        return RelayError(kind=RelayErrorKind.AUTHENTICATION, message=message, status_code=status_code)
    if status_code == 404:
        return RelayError(kind=RelayErrorKind.MODEL_NOT_FOUND, message=message, status_code=status_code)
    return RelayError(kind=RelayErrorKind.FAILED, message=message, status_code=status_code)


def _error_message(response: httpx.Response) -> str:
    try:
        error_data = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    error = error_data.get("error") if isinstance(error_data, dict) else None
    if isinstance(error, dict):
        return error.get("message") or response.reason_phrase
    if isinstance(error, str):
        return error
    return response.reason_phrase


class ConversationRelay:
    """Single round trip to the provider per call: no retry, no backoff."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        model: str = "llama3-8b-8192",
        temperature: float = 0.7,
        max_tokens: int = 1024,
        base_url: str = "https://api.groq.com/openai/v1",
        system_prompt: str = "",
    ):
        self.http_client = http_client
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.base_url = base_url.rstrip("/")
        self.system_prompt = system_prompt

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConversationRelay":
        return cls(
            http_client=httpx.AsyncClient(timeout=settings.groq_timeout),
            api_key=settings.groq_api_key,
            model=settings.groq_model,
            temperature=settings.groq_temperature,
            max_tokens=settings.groq_max_tokens,
            base_url=settings.groq_base_url,
            system_prompt=settings.system_prompt,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def aclose(self) -> None:
        await self.http_client.aclose()

    def build_payload(self, messages: List[Dict[str, str]], max_tokens: Optional[int] = None) -> Dict[str, Any]:
        conversation = [{"role": m["role"], "content": m["content"]} for m in messages]
        if self.system_prompt:
            conversation.insert(0, {"role": "system", "content": self.system_prompt})
        return {
            "model": self.model,
            "messages": conversation,
            "temperature": self.temperature,
            "max_tokens": max_tokens or self.max_tokens,
        }

    async def complete(self, messages: List[Dict[str, str]], max_tokens: Optional[int] = None) -> RelayResult:
        """Send ordered role/content pairs and return the generated reply."""
        if not self.is_configured:
            return RelayResult(error=RelayError(
                kind=RelayErrorKind.NOT_CONFIGURED,
                message="Groq API key not configured",
            ))

        payload = self.build_payload(messages, max_tokens)
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        last = messages[-1]["content"] if messages else ""
        logger.info(f"Sending request to Groq with message: {last[:50]}...")

        try:
            response = await self.http_client.post(
                f"{self.base_url}/chat/completions",
                headers=headers,
                json=payload,
            )
            response.raise_for_status()
            response_data = response.json()
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response)
            error = classify_failure(e.response.status_code, message, e.response.headers.get("retry-after"))
            logger.error(f"Groq API error: status={e.response.status_code} kind={error.kind.value} message={message}")
            return RelayResult(error=error)
        except httpx.HTTPError as e:
            logger.error(f"Failed to connect to Groq API: {str(e)}")
            return RelayResult(error=classify_failure(None, str(e)))
        except ValueError as e:
            logger.error(f"Groq API returned invalid JSON: {str(e)}")
            return RelayResult(error=RelayError(kind=RelayErrorKind.FAILED, message=str(e)))

        try:
            reply = response_data["choices"][0]["message"]["content"] or NO_RESPONSE
        except (KeyError, IndexError, TypeError):
            logger.warning(f"Groq API returned no choices: {response_data}")
            reply = NO_RESPONSE

        logger.info(f"Received response from Groq: {reply[:50]}...")
        return RelayResult(reply=reply)
