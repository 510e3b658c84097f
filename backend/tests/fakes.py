from __future__ import annotations

import asyncio
import json
from typing import Any

from exam_digitizer.domain.models import OptionRecord, QuestionRecord, Subject
from exam_digitizer.infra.ports.llm import LLMPort


class ScriptedLLM(LLMPort):
    """Replays a fixed list of responses; exceptions in the list are raised."""

    provider_name = "scripted"
    model_name = "scripted-test"

    def __init__(self, responses: list[str | Exception]):
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    async def generate_json_from_media(
        self,
        *,
        prompt: str,
        schema: dict[str, Any],
        media_base64: str,
        media_mime_type: str,
        temperature: float = 0.0,
        model: str | None = None,
    ) -> str:
        self.calls.append(
            {
                "prompt": prompt,
                "schema": schema,
                "media_base64": media_base64,
                "media_mime_type": media_mime_type,
                "temperature": temperature,
                "model": model,
            }
        )
        if not self.responses:
            raise RuntimeError("no scripted response left")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def questions_json(*texts_and_subjects: tuple[str, str]) -> str:
    return json.dumps(
        [
            {
                "text": text,
                "options": [
                    {"text": "first", "isCorrect": True},
                    {"text": "second", "isCorrect": False},
                ],
                "subject": subject,
                "explanation": f"Because of {text}",
            }
            for text, subject in texts_and_subjects
        ]
    )


def make_question(question_id: str, text: str, subject: Subject = Subject.PHYSICS, created_at: int = 1) -> QuestionRecord:
    return QuestionRecord(
        question_id=question_id,
        text=text,
        subject=subject,
        created_at=created_at,
        options=[
            OptionRecord(option_id=f"{question_id}-a", text="yes", is_correct=True),
            OptionRecord(option_id=f"{question_id}-b", text="no", is_correct=False),
        ],
        explanation="Stored explanation",
    )


class StallingLLM(LLMPort):
    """Signals ``started`` on the first call and then never answers."""

    provider_name = "stalling"

    def __init__(self) -> None:
        self.started = asyncio.Event()

    async def generate_json_from_media(
        self,
        *,
        prompt: str,
        schema: dict[str, Any],
        media_base64: str,
        media_mime_type: str,
        temperature: float = 0.0,
        model: str | None = None,
    ) -> str:
        self.started.set()
        await asyncio.Event().wait()
        return "[]"
