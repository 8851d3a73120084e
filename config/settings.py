from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


class Settings:
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here. The API key is only
    held here; whether it is present is checked by the gateway on the first
    send, not at startup.
    """

    def __init__(self) -> None:
        self.app_env: str = os.getenv("APP_ENV", "development")
        self.google_api_key: Optional[str] = os.getenv("GOOGLE_API_KEY") or None
        self.gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
        self.temperature: float = float(os.getenv("MODEL_TEMPERATURE", "0.7"))
        self.top_p: float = float(os.getenv("MODEL_TOP_P", "0.95"))
        self.api_base_url: str = os.getenv(
            "GEMINI_API_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
        )
        self.request_timeout: float = float(os.getenv("REQUEST_TIMEOUT", "60"))
        self.gateway_backend: str = os.getenv("CHAT_GATEWAY", "rest").lower()
        self.notice_seconds: float = float(os.getenv("NOTICE_SECONDS", "4"))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
