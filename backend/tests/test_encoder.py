import asyncio
import base64
from pathlib import Path

import pytest

from exam_digitizer.application.encoder import InMemoryFile, LocalFile, encode_file, resolve_mime_type


@pytest.mark.parametrize(
    ("filename", "declared", "expected"),
    [
        ("paper.pdf", None, "application/pdf"),
        ("PAPER.PDF", "", "application/pdf"),
        ("scan.jpg", None, "image/png"),
        (None, None, "image/png"),
        ("paper.pdf", "image/jpeg", "image/jpeg"),
    ],
)
def test_resolve_mime_type_defaults(filename, declared, expected):
    assert resolve_mime_type(filename, declared) == expected


def test_encode_file_carries_full_content():
    payload = bytes(range(256)) * 3
    encoded = asyncio.run(encode_file(InMemoryFile(filename="page.png", payload=payload)))

    assert encoded.filename == "page.png"
    assert encoded.mime_type == "image/png"
    assert encoded.size == len(payload)
    assert base64.b64decode(encoded.base64_data) == payload
    assert encoded.data_uri.startswith("data:image/png;base64,")
    assert encoded.data_uri.endswith(encoded.base64_data)


def test_local_file_is_read_from_disk(tmp_path: Path):
    path = tmp_path / "exam.pdf"
    path.write_bytes(b"%PDF-1.4 sample")

    encoded = asyncio.run(encode_file(LocalFile(path=path)))

    assert encoded.filename == "exam.pdf"
    assert encoded.mime_type == "application/pdf"
    assert base64.b64decode(encoded.base64_data) == b"%PDF-1.4 sample"


def test_read_errors_propagate(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        asyncio.run(encode_file(LocalFile(path=tmp_path / "missing.png")))
