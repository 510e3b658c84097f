from __future__ import annotations

import json
from typing import Any

from exam_digitizer.infra.ports.llm import LLMPort

_MOCK_QUESTIONS: list[dict[str, Any]] = [
    {
        "text": "[mock] A ray of light passes from air into glass. Its speed",
        "options": [
            {"text": "increases", "isCorrect": False},
            {"text": "decreases", "isCorrect": True},
            {"text": "stays the same", "isCorrect": False},
            {"text": "becomes zero", "isCorrect": False},
        ],
        "subject": "Physics",
        "explanation": "Glass has a higher refractive index than air, so light slows down.",
        "imageUrl": "",
    },
    {
        "text": "[mock] Which gas is released when zinc reacts with dilute HCl?",
        "options": [
            {"text": "Oxygen", "isCorrect": False},
            {"text": "Hydrogen", "isCorrect": True},
            {"text": "Chlorine", "isCorrect": False},
            {"text": "Nitrogen", "isCorrect": False},
        ],
        "subject": "Chemistry",
        "explanation": "Zn + 2HCl -> ZnCl2 + H2.",
    },
]


class MockLLM(LLMPort):
    provider_name = "mock"
    model_name = "mock-llm-v1"

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
        return json.dumps(_MOCK_QUESTIONS, ensure_ascii=False)
