import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import (
    FastAPI,
    Request,
)
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.chats import router as chats_router
from app.api.v1.system import router as system_router
from app.config.mongodb import connect_to_mongo, close_mongo_connection
from app.config.settings import Settings, get_settings
from app.middleware.rate_limit import FixedWindowRateLimiter, RateLimitMiddleware
from app.middleware.security import BodySizeLimitMiddleware, SecurityHeadersMiddleware
from app.services.chat_service import ChatService
from app.services.relay_service import ConversationRelay
from app.services.session_service import SessionStore

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format="[%(asctime)s] %(levelname)s %(name)s - %(message)s")


def create_app(
    settings: Optional[Settings] = None,
    session_store: Optional[SessionStore] = None,
    relay: Optional[ConversationRelay] = None,
    rate_limiter: Optional[FixedWindowRateLimiter] = None,
) -> FastAPI:
    """
    Build the application.

    Store and relay passed in are used as-is and left open on shutdown;
    anything not passed in is created at startup and closed at shutdown.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifespan events."""
        mongo_client = None
        owned_relay = None

        store = session_store
        if store is None:
            mongo_client, collection = await connect_to_mongo(settings)
            store = SessionStore(collection)
            try:
                await store.ensure_indexes()
            except Exception as e:
                logger.error(f"Failed to create MongoDB indexes: {str(e)}")

        active_relay = relay
        if active_relay is None:
            owned_relay = active_relay = ConversationRelay.from_settings(settings)
            if not active_relay.is_configured:
                logger.warning("GROQ_API_KEY is not set; message endpoints will fail")

        app.state.session_store = store
        app.state.relay = active_relay
        app.state.chat_service = ChatService(store, active_relay)
        logger.info(f"Chatbot API ready (model: {active_relay.model})")

        yield

        if owned_relay is not None:
            await owned_relay.aclose()
        if mongo_client is not None:
            await close_mongo_connection(mongo_client)

    app = FastAPI(
        title="Chatbot API",
        description="Chat sessions relayed to a Groq-hosted language model",
        version="0.1.0",
        lifespan=lifespan,
    )

    limiter = rate_limiter or FixedWindowRateLimiter(
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.state.rate_limiter = limiter

    # Added last runs first: security headers, CORS, rate limit, body limit.
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_body_bytes)
    app.add_middleware(RateLimitMiddleware, limiter=limiter)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    app.include_router(chats_router, prefix="/api/chats")
    app.include_router(system_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
