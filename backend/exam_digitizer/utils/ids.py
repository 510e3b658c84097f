"""Id generation for questions, options and ledger rows."""

from __future__ import annotations

import itertools
from typing import Protocol

from ulid import ULID


class IdGenerator(Protocol):
    def next_id(self) -> str:
        ...


def new_public_id(prefix: str = "") -> str:
    """Return a prefixed ULID string, e.g. ``q_01J5K…``."""
    return f"{prefix}{ULID()}"


class UlidIdGenerator:
    def __init__(self, prefix: str = ""):
        self.prefix = prefix

    def next_id(self) -> str:
        return new_public_id(self.prefix)


class SequentialIdGenerator:
    """Deterministic ``<prefix>1``, ``<prefix>2``, ... ids."""

    def __init__(self, prefix: str = "id-", start: int = 1):
        self.prefix = prefix
        self._counter = itertools.count(start)

    def next_id(self) -> str:
        return f"{self.prefix}{next(self._counter)}"
