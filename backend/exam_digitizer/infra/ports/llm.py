from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class LLMPort(ABC):
    provider_name: str = "unknown"
    model_name: str = ""

    @abstractmethod
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
        """Return the raw schema-constrained JSON text produced for the media.

        Implementations raise on transport or provider errors. The text is not
        parsed here; callers decide what counts as a usable answer.
        """
