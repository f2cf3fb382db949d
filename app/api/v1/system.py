"""Health and provider probe routes."""

import logging
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from app.api.deps import get_relay
from app.schemas.chats import HealthResponse, ProviderTestResponse
from app.services.relay_service import ConversationRelay

logger = logging.getLogger(__name__)
router = APIRouter(tags=["system"])

PROBE_MESSAGE = "Hello, this is a test message."


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse()


@router.get("/test-groq", response_model=ProviderTestResponse)
async def test_groq(relay: ConversationRelay = Depends(get_relay)):
    """Send a short fixed prompt to the provider to verify the key and model."""
    if not relay.is_configured:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Groq API key not configured"},
        )

    result = await relay.complete([{"role": "user", "content": PROBE_MESSAGE}], max_tokens=100)
    if not result.ok:
        logger.error(f"Groq API test error: {result.error.message}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Groq API test failed",
                "details": result.error.message,
                "status": result.error.status_code,
            },
        )

    return ProviderTestResponse(response=result.reply[:100] + "...")
