from __future__ import annotations

import asyncio
import base64
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

DEFAULT_PDF_MIME = "application/pdf"
DEFAULT_IMAGE_MIME = "image/png"


class FileSource(Protocol):
    """Anything with a name, an optional declared type and async ``read()``.

    FastAPI's ``UploadFile`` satisfies this as-is.
    """

    filename: str | None
    content_type: str | None

    async def read(self) -> bytes:
        ...


@dataclass
class InMemoryFile:
    filename: str | None
    payload: bytes
    content_type: str | None = None

    async def read(self) -> bytes:
        return self.payload


@dataclass
class LocalFile:
    path: Path
    content_type: str | None = None

    @property
    def filename(self) -> str:
        return self.path.name

    async def read(self) -> bytes:
        return await asyncio.to_thread(self.path.read_bytes)


@dataclass(frozen=True)
class EncodedPayload:
    filename: str
    mime_type: str
    base64_data: str
    size: int

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64_data}"


def resolve_mime_type(filename: str | None, declared: str | None) -> str:
    if declared:
        return declared
    if (filename or "").lower().endswith(".pdf"):
        return DEFAULT_PDF_MIME
    return DEFAULT_IMAGE_MIME


def encode_bytes(filename: str | None, payload: bytes, declared: str | None = None) -> EncodedPayload:
    return EncodedPayload(
        filename=filename or "",
        mime_type=resolve_mime_type(filename, declared),
        base64_data=base64.b64encode(payload).decode("ascii"),
        size=len(payload),
    )


async def encode_file(source: FileSource) -> EncodedPayload:
    payload = await source.read()
    return encode_bytes(source.filename, payload, source.content_type)
