from __future__ import annotations

import logging

from sqlalchemy.orm import Session, sessionmaker

from exam_digitizer.infra.db.models import SlotRow
from exam_digitizer.infra.db.session import get_session_factory
from exam_digitizer.infra.ports.storage import SlotStorePort

logger = logging.getLogger(__name__)


class DatabaseSlotStore(SlotStorePort):
    """Slot store backed by SQLAlchemy, one row per slot name."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None):
        self._session_factory = session_factory or get_session_factory()

    def read(self, name: str) -> str | None:
        with self._session_factory() as db:
            row = db.get(SlotRow, name)
            if row is None:
                return None
            return row.payload

    def write(self, name: str, payload: str) -> None:
        with self._session_factory() as db:
            row = db.get(SlotRow, name)
            if row is None:
                db.add(SlotRow(name=name, payload=payload))
            else:
                row.payload = payload
            db.commit()
        logger.debug("Slot %s written (%d chars)", name, len(payload))
