import asyncio
import json

from exam_digitizer.application.extraction import QUESTION_LIST_SCHEMA, ExtractionClient
from exam_digitizer.application.encoder import encode_bytes
from exam_digitizer.infra.llm.mock import MockLLM
from exam_digitizer.infra.storage.memory import InMemorySlotStore


def test_mock_llm_and_memory_slots():
    slots = InMemorySlotStore()
    slots.write("exam_questions", "[]")

    raw = asyncio.run(
        MockLLM().generate_json_from_media(
            prompt="hello",
            schema=QUESTION_LIST_SCHEMA,
            media_base64="",
            media_mime_type="image/png",
        )
    )

    assert slots.read("exam_questions") == "[]"
    assert slots.read("missing") is None
    assert slots.write_count == 1

    parsed = json.loads(raw)
    assert isinstance(parsed, list)
    assert {item["subject"] for item in parsed} == {"Physics", "Chemistry"}


def test_mock_llm_output_normalizes_cleanly():
    result = asyncio.run(ExtractionClient(llm=MockLLM()).extract(encode_bytes("x.png", b"x")))

    assert len(result.questions) == 2
    assert all(q.explanation for q in result.questions)
    assert all(len(q.correct_options) == 1 for q in result.questions)
