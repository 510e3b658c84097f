from __future__ import annotations

import logging
import time
from collections import Counter
from collections.abc import Callable
from typing import Protocol

from exam_digitizer.domain.codec import dump_questions
from exam_digitizer.domain.models import QuestionRecord, Subject

logger = logging.getLogger(__name__)


class QuestionRepositoryPort(Protocol):
    def load(self) -> list[QuestionRecord]:
        ...

    def save(self, questions: list[QuestionRecord]) -> None:
        ...


class QuestionStore:
    """Newest-first question collection, saved in full after every mutation."""

    def __init__(self, repository: QuestionRepositoryPort, *, now_ms: Callable[[], int] | None = None):
        self.repository = repository
        self._now_ms = now_ms or (lambda: int(time.time() * 1000))
        self._questions: list[QuestionRecord] = []

    @classmethod
    def open(cls, repository: QuestionRepositoryPort, **kwargs) -> QuestionStore:
        store = cls(repository, **kwargs)
        store.reload()
        return store

    def reload(self) -> None:
        self._questions = list(self.repository.load())

    @property
    def questions(self) -> list[QuestionRecord]:
        return list(self._questions)

    def __len__(self) -> int:
        return len(self._questions)

    def get(self, question_id: str) -> QuestionRecord | None:
        for question in self._questions:
            if question.question_id == question_id:
                return question
        return None

    def append(self, questions: list[QuestionRecord]) -> None:
        self._questions = list(questions) + self._questions
        self.repository.save(self._questions)
        logger.info("Stored %d new questions (total=%d)", len(questions), len(self._questions))

    def remove(self, question_id: str) -> bool:
        remaining = [q for q in self._questions if q.question_id != question_id]
        if len(remaining) == len(self._questions):
            return False
        self._questions = remaining
        self.repository.save(self._questions)
        return True

    def count_by_subject(self) -> dict[Subject, int]:
        return dict(Counter(q.subject for q in self._questions))

    def search(self, query: str = "", subject: Subject | str | None = None) -> list[QuestionRecord]:
        needle = (query or "").lower()
        target: Subject | None = None
        if subject:
            try:
                target = Subject(subject)
            except ValueError:
                return []
        return [
            q
            for q in self._questions
            if needle in q.text.lower() and (target is None or q.subject == target)
        ]

    def export_json(self) -> str:
        return dump_questions(self._questions, indent=2)

    def export_filename(self) -> str:
        return f"exam-export-{self._now_ms()}.json"
