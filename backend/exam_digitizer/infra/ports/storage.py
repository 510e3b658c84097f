from __future__ import annotations

from abc import ABC, abstractmethod


class SlotStorePort(ABC):
    """Key-value blob store: each named slot holds one serialized payload."""

    @abstractmethod
    def read(self, name: str) -> str | None:
        """Return the payload stored under ``name`` or ``None``."""

    @abstractmethod
    def write(self, name: str, payload: str) -> None:
        """Overwrite the slot with ``payload``."""
