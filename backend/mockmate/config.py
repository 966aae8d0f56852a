from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_INTERVIEW_MODEL = "gemini-2.5-flash-preview-09-2025"
DEFAULT_TRANSCRIBE_MODEL = "gemini-2.0-flash"
DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./data.db"
DEFAULT_USER_ID = "mock-user-123"


@dataclass(frozen=True)
class Settings:
    # Provider
    gemini_api_key: Optional[str] = None
    gemini_api_base: str = DEFAULT_API_BASE
    interview_model: str = DEFAULT_INTERVIEW_MODEL
    transcribe_model: str = DEFAULT_TRANSCRIBE_MODEL
    gemini_timeout: float = 30.0

    # Storage
    database_url: str = DEFAULT_DATABASE_URL
    default_user_id: str = DEFAULT_USER_ID

    # Server
    log_level: str = "INFO"
    port: int = 8000

    @property
    def has_credential(self) -> bool:
        return bool(self.gemini_api_key)


def load_settings() -> Settings:
    load_dotenv()

    api_key = os.getenv("GEMINI_API_KEY", "").strip()
    return Settings(
        gemini_api_key=api_key or None,
        gemini_api_base=os.getenv("GEMINI_API_BASE", DEFAULT_API_BASE).rstrip("/"),
        interview_model=os.getenv("GEMINI_INTERVIEW_MODEL", DEFAULT_INTERVIEW_MODEL),
        transcribe_model=os.getenv("GEMINI_TRANSCRIBE_MODEL", DEFAULT_TRANSCRIBE_MODEL),
        gemini_timeout=float(os.getenv("GEMINI_TIMEOUT", "30")),
        database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL).strip().strip('"'),
        default_user_id=os.getenv("MOCKMATE_DEFAULT_USER_ID", DEFAULT_USER_ID),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        port=int(os.getenv("PORT", "8000")),
    )
