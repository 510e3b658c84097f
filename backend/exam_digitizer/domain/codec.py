"""camelCase JSON form of the question collection.

The same shape is used for the persisted slot and for the export download:

    [{"id", "text", "options": [{"id", "text", "isCorrect"}], "subject",
      "explanation"?, "imageUrl"?, "createdAt"}]
"""

from __future__ import annotations

import json
from typing import Any

from exam_digitizer.domain.models import OptionRecord, QuestionRecord, Subject


def option_to_dict(option: OptionRecord) -> dict[str, Any]:
    return {"id": option.option_id, "text": option.text, "isCorrect": option.is_correct}


def question_to_dict(question: QuestionRecord) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": question.question_id,
        "text": question.text,
        "options": [option_to_dict(opt) for opt in question.options],
        "subject": question.subject.value,
    }
    if question.explanation is not None:
        data["explanation"] = question.explanation
    if question.image_url is not None:
        data["imageUrl"] = question.image_url
    data["createdAt"] = question.created_at
    return data


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def question_from_dict(data: dict[str, Any]) -> QuestionRecord:
    options = [
        OptionRecord(
            option_id=str(item.get("id") or ""),
            text=str(item.get("text") or ""),
            is_correct=bool(item.get("isCorrect")),
        )
        for item in (data.get("options") or [])
        if isinstance(item, dict)
    ]
    return QuestionRecord(
        question_id=str(data["id"]),
        text=str(data.get("text") or ""),
        subject=Subject.coerce(data.get("subject")),
        created_at=int(data.get("createdAt") or 0),
        options=options,
        explanation=_optional_str(data.get("explanation")),
        image_url=_optional_str(data.get("imageUrl")),
    )


def dump_questions(questions: list[QuestionRecord], *, indent: int | None = None) -> str:
    return json.dumps([question_to_dict(q) for q in questions], ensure_ascii=False, indent=indent)


def load_questions(payload: str | None) -> list[QuestionRecord]:
    if not payload:
        return []
    data = json.loads(payload)
    if not isinstance(data, list):
        raise ValueError("Stored question collection is not a JSON array")
    return [question_from_dict(item) for item in data if isinstance(item, dict)]
