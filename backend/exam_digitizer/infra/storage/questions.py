from __future__ import annotations

import logging

from exam_digitizer.domain.codec import dump_questions, load_questions
from exam_digitizer.domain.models import QuestionRecord
from exam_digitizer.infra.ports.storage import SlotStorePort

logger = logging.getLogger(__name__)

DEFAULT_SLOT = "exam_questions"


class QuestionRepository:
    """Loads and saves the whole question collection through one slot."""

    def __init__(self, slots: SlotStorePort, slot_name: str = DEFAULT_SLOT):
        self.slots = slots
        self.slot_name = slot_name

    def load(self) -> list[QuestionRecord]:
        questions = load_questions(self.slots.read(self.slot_name))
        logger.info("Loaded %d questions from slot %s", len(questions), self.slot_name)
        return questions

    def save(self, questions: list[QuestionRecord]) -> None:
        self.slots.write(self.slot_name, dump_questions(questions))
