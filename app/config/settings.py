"""Application settings loaded from environment variables."""

import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class Settings(BaseModel):
    """Runtime configuration for the chat API.

    Keep all credentials and connection strings centralized here.
    """

    groq_api_key: str = Field(default="", description="Groq API key")
    groq_base_url: str = Field(default="https://api.groq.com/openai/v1")
    groq_model: str = Field(default="llama3-8b-8192")
    groq_temperature: float = Field(default=0.7)
    groq_max_tokens: int = Field(default=1024)
    groq_timeout: float = Field(default=60.0, description="Provider request timeout in seconds")
    system_prompt: str = Field(default="", description="Optional system message prepended to every conversation")

    mongodb_uri: str = Field(default="mongodb://localhost:27017/chatbot")
    mongodb_db: Optional[str] = Field(default=None, description="Overrides the default database of the URI")

    port: int = Field(default=5000)
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])
    rate_limit_window_seconds: int = Field(default=15 * 60)
    rate_limit_max_requests: int = Field(default=100)
    max_body_bytes: int = Field(default=10 * 1024 * 1024)
    log_level: str = Field(default="INFO")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment (and .env, if present)."""
        load_dotenv()
        return cls(
            groq_api_key=os.getenv("GROQ_API_KEY", "").strip(),
            groq_base_url=os.getenv("GROQ_BASE_URL", "https://api.groq.com/openai/v1").rstrip("/"),
            groq_model=os.getenv("GROQ_MODEL", "llama3-8b-8192"),
            groq_temperature=float(os.getenv("GROQ_TEMPERATURE", "0.7")),
            groq_max_tokens=int(os.getenv("GROQ_MAX_TOKENS", "1024")),
            groq_timeout=float(os.getenv("GROQ_TIMEOUT", "60")),
            system_prompt=os.getenv("SYSTEM_PROMPT", ""),
            mongodb_uri=os.getenv("MONGODB_URI", "mongodb://localhost:27017/chatbot"),
            mongodb_db=os.getenv("MONGODB_DB") or None,
            port=int(os.getenv("PORT", "5000")),
            cors_allow_origins=[
                origin.strip()
                for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")
                if origin.strip()
            ],
            rate_limit_window_seconds=int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", str(15 * 60))),
            rate_limit_max_requests=int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100")),
            max_body_bytes=int(os.getenv("MAX_BODY_BYTES", str(10 * 1024 * 1024))),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
