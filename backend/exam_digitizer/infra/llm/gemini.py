from __future__ import annotations

import logging
from typing import Any

import httpx

from exam_digitizer.infra.ports.llm import LLMPort

logger = logging.getLogger(__name__)

_GOOGLE_AI_BASE = "https://generativelanguage.googleapis.com/v1beta"
_TYPE_MAP = {
    "object": "OBJECT",
    "array": "ARRAY",
    "string": "STRING",
    "number": "NUMBER",
    "integer": "INTEGER",
    "boolean": "BOOLEAN",
    "null": "NULL",
}


class GeminiAPIError(RuntimeError):
    pass


def _normalize_schema_type(type_value: object) -> tuple[str | None, bool]:
    if isinstance(type_value, str):
        mapped = _TYPE_MAP.get(type_value.lower())
        return mapped, False

    if isinstance(type_value, list):
        types = [item for item in type_value if isinstance(item, str)]
        nullable = any(item.lower() == "null" for item in types)
        non_null = [item for item in types if item.lower() != "null"]
        if not non_null:
            return None, nullable
        mapped = _TYPE_MAP.get(non_null[0].lower())
        return mapped, nullable

    return None, False


def to_gemini_response_schema(node: object) -> dict:
    """Convert JSON Schema into the ``responseSchema`` subset Gemini REST accepts."""
    if not isinstance(node, dict):
        return {}

    out: dict[str, object] = {}
    mapped_type, nullable = _normalize_schema_type(node.get("type"))
    if mapped_type:
        out["type"] = mapped_type
    if nullable:
        out["nullable"] = True
    elif isinstance(node.get("nullable"), bool):
        out["nullable"] = node["nullable"]

    if isinstance(node.get("description"), str):
        out["description"] = node["description"]
    if isinstance(node.get("format"), str):
        out["format"] = node["format"]
    if isinstance(node.get("enum"), list):
        out["enum"] = node["enum"]
    if isinstance(node.get("required"), list):
        out["required"] = [item for item in node["required"] if isinstance(item, str)]

    properties = node.get("properties")
    if isinstance(properties, dict):
        out["properties"] = {
            key: to_gemini_response_schema(value)
            for key, value in properties.items()
            if isinstance(key, str)
        }

    items = node.get("items")
    if isinstance(items, dict):
        out["items"] = to_gemini_response_schema(items)
    elif isinstance(items, list) and items and isinstance(items[0], dict):
        out["items"] = to_gemini_response_schema(items[0])

    return out


class GeminiLLM(LLMPort):
    provider_name = "gemini"

    def __init__(
        self,
        *,
        api_key: str,
        model_name: str,
        timeout_seconds: int = 90,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.model_name = model_name
        self.timeout_seconds = max(3, int(timeout_seconds))
        self._transport = transport

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
        payload = {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": prompt},
                        {
                            "inlineData": {
                                "mimeType": media_mime_type,
                                "data": media_base64,
                            }
                        },
                    ],
                }
            ],
            "generationConfig": {
                "temperature": temperature,
                "responseMimeType": "application/json",
                "responseSchema": to_gemini_response_schema(schema),
            },
        }
        return await self._request_text(payload=payload, model=model)

    async def _request_text(self, *, payload: dict, model: str | None) -> str:
        model_name = model or self.model_name
        url = f"{_GOOGLE_AI_BASE}/models/{model_name}:generateContent"

        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout_seconds) as client:
            try:
                resp = await client.post(
                    url,
                    params={"key": self.api_key},
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
            except httpx.TimeoutException as exc:
                raise GeminiAPIError(f"Gemini API timeout (timeout={self.timeout_seconds}s).") from exc
            except httpx.HTTPError as exc:
                raise GeminiAPIError(f"Gemini API connection error: {exc}") from exc

        if resp.status_code >= 400:
            raise GeminiAPIError(f"Gemini API error ({resp.status_code}): {resp.text[:400]}")

        parsed = resp.json()
        candidates = parsed.get("candidates") or []
        if not candidates:
            raise GeminiAPIError("Gemini response has no candidates")

        parts = (candidates[0].get("content") or {}).get("parts") or []
        texts = [part.get("text") for part in parts if isinstance(part, dict)]
        text = "".join(item for item in texts if isinstance(item, str))
        logger.debug("Gemini %s returned %d chars", model_name, len(text))
        return text
