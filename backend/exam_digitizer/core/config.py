from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv


def _load_dotenv() -> None:
    if os.getenv("EXAMDIG_SKIP_DOTENV") == "1":
        return

    env_path = Path(__file__).resolve().parents[2] / ".env"
    if not env_path.exists():
        return

    load_dotenv(env_path, override=True)


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_non_negative_int(value: str | None, default: int = 0) -> int:
    if value is None:
        return default
    raw = value.strip()
    if not raw:
        return default
    try:
        return max(0, int(raw))
    except ValueError:
        return default


def _parse_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


@dataclass(frozen=True)
class Settings:
    env: str
    app_name: str
    cors_origins: list[str]
    database_url: str | None
    store_backend: str
    store_slot: str
    llm_backend: str
    gemini_api_key: str | None
    gemini_model: str
    llm_timeout_seconds: int
    extraction_max_attempts: int
    extraction_backoff_ms: int
    sync_processing: bool
    log_level: str


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    _load_dotenv()

    env = os.getenv("EXAMDIG_ENV", "development")
    cors = os.getenv("EXAMDIG_CORS_ORIGINS", "http://localhost:3000")
    store_backend = os.getenv("EXAMDIG_STORE_BACKEND", "database").strip().lower() or "database"
    store_slot = os.getenv("EXAMDIG_STORE_SLOT", "exam_questions").strip() or "exam_questions"
    llm_backend = os.getenv("EXAMDIG_LLM_BACKEND", "mock").strip().lower() or "mock"
    llm_timeout_seconds = _parse_non_negative_int(os.getenv("EXAMDIG_LLM_TIMEOUT_SECONDS"), default=90) or 90
    max_attempts = _parse_non_negative_int(os.getenv("EXAMDIG_EXTRACTION_MAX_ATTEMPTS"), default=3) or 3
    backoff_ms = _parse_non_negative_int(os.getenv("EXAMDIG_EXTRACTION_BACKOFF_MS"), default=1500)

    return Settings(
        env=env,
        app_name="Exam Digitizer API",
        cors_origins=_split_csv(cors),
        database_url=os.getenv("DATABASE_URL") or None,
        store_backend=store_backend,
        store_slot=store_slot,
        llm_backend=llm_backend,
        gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
        llm_timeout_seconds=llm_timeout_seconds,
        extraction_max_attempts=max_attempts,
        extraction_backoff_ms=backoff_ms,
        sync_processing=_parse_bool(os.getenv("EXAMDIG_SYNC_PROCESSING"), default=False),
        log_level=(os.getenv("EXAMDIG_LOG_LEVEL", "INFO").strip().upper() or "INFO"),
    )
