from __future__ import annotations

from exam_digitizer.infra.ports.storage import SlotStorePort


class InMemorySlotStore(SlotStorePort):
    def __init__(self, initial: dict[str, str] | None = None):
        self.slots: dict[str, str] = dict(initial or {})
        self.write_count = 0

    def read(self, name: str) -> str | None:
        return self.slots.get(name)

    def write(self, name: str, payload: str) -> None:
        self.slots[name] = payload
        self.write_count += 1
