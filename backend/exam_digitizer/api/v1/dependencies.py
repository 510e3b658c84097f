from __future__ import annotations

from functools import lru_cache

from exam_digitizer.application.extraction import ExtractionClient
from exam_digitizer.application.orchestrator import UploadOrchestrator
from exam_digitizer.application.question_store import QuestionStore
from exam_digitizer.core.config import get_settings
from exam_digitizer.infra.db.session import init_db
from exam_digitizer.infra.db.store import DatabaseSlotStore
from exam_digitizer.infra.llm.gemini import GeminiLLM
from exam_digitizer.infra.llm.mock import MockLLM
from exam_digitizer.infra.ports.llm import LLMPort
from exam_digitizer.infra.ports.storage import SlotStorePort
from exam_digitizer.infra.storage.memory import InMemorySlotStore
from exam_digitizer.infra.storage.questions import QuestionRepository
from exam_digitizer.utils.ids import UlidIdGenerator


@lru_cache(maxsize=1)
def get_slot_store() -> SlotStorePort:
    settings = get_settings()
    if settings.store_backend == "memory":
        return InMemorySlotStore()
    if settings.store_backend != "database":
        raise RuntimeError(f"Unknown EXAMDIG_STORE_BACKEND={settings.store_backend!r}; use 'database' or 'memory'")
    init_db()
    return DatabaseSlotStore()


@lru_cache(maxsize=1)
def get_question_store() -> QuestionStore:
    settings = get_settings()
    repository = QuestionRepository(get_slot_store(), slot_name=settings.store_slot)
    return QuestionStore.open(repository)


@lru_cache(maxsize=1)
def get_llm() -> LLMPort:
    settings = get_settings()
    if settings.llm_backend == "gemini":
        if not settings.gemini_api_key:
            raise RuntimeError("GEMINI_API_KEY is required when EXAMDIG_LLM_BACKEND=gemini")
        return GeminiLLM(
            api_key=settings.gemini_api_key,
            model_name=settings.gemini_model,
            timeout_seconds=settings.llm_timeout_seconds,
        )
    return MockLLM()


def get_extraction_client() -> ExtractionClient:
    settings = get_settings()
    return ExtractionClient(
        llm=get_llm(),
        ids=UlidIdGenerator(),
        max_attempts=settings.extraction_max_attempts,
        backoff_seconds=settings.extraction_backoff_ms / 1000.0,
        model=settings.gemini_model if settings.llm_backend == "gemini" else None,
    )


@lru_cache(maxsize=1)
def get_orchestrator() -> UploadOrchestrator:
    return UploadOrchestrator(
        extraction=get_extraction_client(),
        store=get_question_store(),
        ids=UlidIdGenerator(prefix="file_"),
    )


async def provide_question_store() -> QuestionStore:
    return get_question_store()


async def provide_orchestrator() -> UploadOrchestrator:
    return get_orchestrator()
