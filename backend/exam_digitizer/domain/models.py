from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

FileStatus = Literal["pending", "processing", "retrying", "completed", "failed"]
TERMINAL_STATUSES: frozenset[str] = frozenset({"completed", "failed"})


class Subject(str, Enum):
    PHYSICS = "Physics"
    CHEMISTRY = "Chemistry"
    BIOLOGY = "Biology"
    MATH = "Mathematics"
    ENGLISH = "English"
    BENGALI = "Bengali"
    GENERAL_KNOWLEDGE = "General Knowledge"
    OTHER = "Other"

    @classmethod
    def coerce(cls, value: object) -> Subject:
        """Match a free-form subject label; anything unrecognised is ``Other``."""
        if isinstance(value, Subject):
            return value
        label = str(value or "").strip().lower()
        for item in cls:
            if item.value.lower() == label:
                return item
        return cls.OTHER


@dataclass
class OptionRecord:
    option_id: str
    text: str
    is_correct: bool


@dataclass
class QuestionRecord:
    question_id: str
    text: str
    subject: Subject
    created_at: int
    options: list[OptionRecord] = field(default_factory=list)
    explanation: str | None = None
    image_url: str | None = None

    @property
    def correct_options(self) -> list[OptionRecord]:
        return [opt for opt in self.options if opt.is_correct]


@dataclass
class FileProcessingStatus:
    status_id: str
    name: str
    status: FileStatus = "pending"
    attempt: int = 0
    question_count: int = 0
    error_message: str | None = None

    @property
    def settled(self) -> bool:
        return self.status in TERMINAL_STATUSES
