"""Exam file to question records through the LLM port.

One extraction is a bounded series of attempts. ``ExtractionClient.attempts``
yields an event per step so callers can mirror progress:

    AttemptStarted(1) -> AttemptFailed(1, will_retry=True, delay=1.5)
    AttemptStarted(2) -> ... -> Settled(result=...) | Settled(error=...)

Exactly one ``Settled`` closes every stream.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from exam_digitizer.application.encoder import EncodedPayload
from exam_digitizer.domain.models import OptionRecord, QuestionRecord, Subject
from exam_digitizer.infra.ports.llm import LLMPort
from exam_digitizer.utils.ids import IdGenerator, UlidIdGenerator

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
BACKOFF_SECONDS = 1.5
EXTRACTION_TEMPERATURE = 0.2

EXTRACTION_PROMPT = (
    "Extract all MCQ questions from this file. For each question: "
    "1. Identify text and options. "
    "2. Identify the correct answer. "
    "3. Categorize the subject. "
    "4. IMPORTANT: If the file does not contain an explanation for the answer, "
    "you MUST create a helpful, high-quality explanation yourself. "
    "5. If a question relies on a diagram visible in the file, note it in the "
    "'imageUrl' field as a descriptive placeholder."
)

QUESTION_LIST_SCHEMA: dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["text", "options", "subject", "explanation"],
        "properties": {
            "text": {"type": "string", "description": "The text of the question"},
            "options": {
                "type": "array",
                "items": {
                    "type": "object",
                    "required": ["text", "isCorrect"],
                    "properties": {
                        "text": {"type": "string"},
                        "isCorrect": {
                            "type": "boolean",
                            "description": "Whether this option is marked as correct",
                        },
                    },
                },
            },
            "subject": {
                "type": "string",
                "description": "The subject category ({})".format(", ".join(s.value for s in Subject)),
            },
            "explanation": {
                "type": "string",
                "description": (
                    "If an explanation is not present in the text, you MUST generate "
                    "a clear and concise one based on your knowledge."
                ),
            },
            "imageUrl": {
                "type": "string",
                "description": (
                    "Optional: If there is a diagram or specific image reference in the "
                    "question, describe it here or leave as empty string."
                ),
            },
        },
    },
}


class ExtractionResponseError(ValueError):
    """The model answered, but not with a usable question array."""


class ExtractionFailedError(RuntimeError):
    def __init__(self, message: str, *, attempts: int):
        super().__init__(message)
        self.attempts = attempts


@dataclass
class ExtractionResult:
    questions: list[QuestionRecord]
    raw_json: str


@dataclass(frozen=True)
class AttemptStarted:
    attempt: int


@dataclass(frozen=True)
class AttemptFailed:
    attempt: int
    error: Exception
    will_retry: bool
    delay_seconds: float = 0.0


@dataclass(frozen=True)
class Settled:
    result: ExtractionResult | None = None
    error: ExtractionFailedError | None = None

    @property
    def ok(self) -> bool:
        return self.result is not None


AttemptEvent = AttemptStarted | AttemptFailed | Settled


def _now_ms() -> int:
    return int(time.time() * 1000)


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass
class ExtractionClient:
    llm: LLMPort
    ids: IdGenerator = field(default_factory=UlidIdGenerator)
    now_ms: Callable[[], int] = _now_ms
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    max_attempts: int = MAX_ATTEMPTS
    backoff_seconds: float = BACKOFF_SECONDS
    model: str | None = None

    async def attempts(self, payload: EncodedPayload) -> AsyncIterator[AttemptEvent]:
        last_error: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            yield AttemptStarted(attempt)
            try:
                result = await self._attempt(payload)
            except Exception as exc:
                last_error = exc
                will_retry = attempt < self.max_attempts
                delay = self.backoff_seconds * attempt if will_retry else 0.0
                logger.warning(
                    "Extraction attempt %d/%d failed for %s: %s",
                    attempt,
                    self.max_attempts,
                    payload.filename or "<unnamed>",
                    exc,
                )
                yield AttemptFailed(attempt=attempt, error=exc, will_retry=will_retry, delay_seconds=delay)
                if will_retry:
                    await self.sleep(delay)
                continue

            yield Settled(result=result)
            return

        error = ExtractionFailedError(
            f"Failed to parse file after {self.max_attempts} attempts.",
            attempts=self.max_attempts,
        )
        error.__cause__ = last_error
        yield Settled(error=error)

    async def extract(
        self,
        payload: EncodedPayload,
        on_retry: Callable[[int], None] | None = None,
    ) -> ExtractionResult:
        """Run all attempts; raise ``ExtractionFailedError`` once they are used up."""
        async for event in self.attempts(payload):
            if isinstance(event, AttemptFailed) and event.will_retry and on_retry is not None:
                on_retry(event.attempt)

        outcome: Settled = event
        if outcome.error is not None:
            raise outcome.error
        return outcome.result

    async def _attempt(self, payload: EncodedPayload) -> ExtractionResult:
        text = await self.llm.generate_json_from_media(
            prompt=EXTRACTION_PROMPT,
            schema=QUESTION_LIST_SCHEMA,
            media_base64=payload.base64_data,
            media_mime_type=payload.mime_type,
            temperature=EXTRACTION_TEMPERATURE,
            model=self.model,
        )
        if not text or not text.strip():
            raise ExtractionResponseError("Empty response from AI")

        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ExtractionResponseError(f"Response is not valid JSON: {exc.msg}") from exc

        if not isinstance(parsed, list):
            raise ExtractionResponseError("Response is not an array")

        questions = [self._to_question(item, index) for index, item in enumerate(parsed)]
        return ExtractionResult(questions=questions, raw_json=text)

    def _to_question(self, item: Any, index: int) -> QuestionRecord:
        if not isinstance(item, dict):
            raise ExtractionResponseError(f"Response item {index} is not an object")

        # Question id first, then its options, in response order.
        question_id = self.ids.next_id()
        options = [
            OptionRecord(
                option_id=self.ids.next_id(),
                text=str(opt.get("text") or ""),
                is_correct=opt.get("isCorrect") is True,
            )
            for opt in (item.get("options") or [])
            if isinstance(opt, dict)
        ]
        return QuestionRecord(
            question_id=question_id,
            text=str(item.get("text") or "").strip(),
            subject=Subject.coerce(item.get("subject")),
            created_at=self.now_ms(),
            options=options,
            explanation=_optional_text(item.get("explanation")),
            image_url=_optional_text(item.get("imageUrl")),
        )
