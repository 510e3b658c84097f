from __future__ import annotations

import dataclasses
import logging
from collections.abc import Awaitable, Callable, Sequence

from exam_digitizer.application.encoder import EncodedPayload, FileSource, encode_file
from exam_digitizer.application.extraction import (
    AttemptFailed,
    AttemptStarted,
    ExtractionClient,
    ExtractionResult,
    Settled,
)
from exam_digitizer.application.question_store import QuestionStore
from exam_digitizer.domain.models import FileProcessingStatus
from exam_digitizer.utils.ids import IdGenerator, UlidIdGenerator

logger = logging.getLogger(__name__)

LedgerListener = Callable[["BatchLedger"], None]

MAX_FINISHED_BATCHES = 20


class BatchAbortedError(RuntimeError):
    pass


class BatchLedger:
    """Per-file progress rows for one upload batch, in input order."""

    def __init__(self, batch_id: str, entries: list[FileProcessingStatus]):
        self.batch_id = batch_id
        self.entries = entries
        self.running = False
        self.error_message: str | None = None
        self._listeners: list[LedgerListener] = []

    def subscribe(self, listener: LedgerListener) -> None:
        self._listeners.append(listener)

    @property
    def settled_count(self) -> int:
        return sum(1 for entry in self.entries if entry.settled)

    @property
    def percent(self) -> float:
        if not self.entries:
            return 0.0
        return self.settled_count / len(self.entries) * 100.0

    @property
    def settled(self) -> bool:
        return all(entry.settled for entry in self.entries)

    @property
    def aborted(self) -> bool:
        return self.error_message is not None

    def snapshot(self) -> list[FileProcessingStatus]:
        return [dataclasses.replace(entry) for entry in self.entries]

    def update(self, index: int, **changes) -> FileProcessingStatus:
        entry = dataclasses.replace(self.entries[index], **changes)
        self.entries[index] = entry
        self._notify()
        return entry

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self)


class UploadOrchestrator:
    """Runs a batch of files through encode -> extract -> store, one file at a time."""

    def __init__(
        self,
        *,
        extraction: ExtractionClient,
        store: QuestionStore,
        ids: IdGenerator | None = None,
        encoder: Callable[[FileSource], Awaitable[EncodedPayload]] = encode_file,
        max_finished_batches: int = MAX_FINISHED_BATCHES,
    ):
        self.extraction = extraction
        self.store = store
        self.ids = ids or UlidIdGenerator()
        self.encoder = encoder
        self.max_finished_batches = max(0, max_finished_batches)
        self._batches: dict[str, BatchLedger] = {}

    @property
    def is_processing(self) -> bool:
        return any(ledger.running for ledger in self._batches.values())

    def create_ledger(self, files: Sequence[FileSource]) -> BatchLedger:
        entries = [
            FileProcessingStatus(status_id=self.ids.next_id(), name=source.filename or f"file-{idx + 1}")
            for idx, source in enumerate(files)
        ]
        ledger = BatchLedger(batch_id=self.ids.next_id(), entries=entries)
        self._evict_finished()
        self._batches[ledger.batch_id] = ledger
        return ledger

    def _evict_finished(self) -> None:
        # Oldest first; running batches are never dropped.
        finished = [batch_id for batch_id, ledger in self._batches.items() if not ledger.running]
        excess = len(finished) - self.max_finished_batches + 1
        for batch_id in finished[: max(0, excess)]:
            del self._batches[batch_id]

    def get_batch(self, batch_id: str) -> BatchLedger | None:
        return self._batches.get(batch_id)

    def dismiss(self, batch_id: str) -> bool:
        ledger = self._batches.get(batch_id)
        if ledger is None or ledger.running:
            return False
        del self._batches[batch_id]
        return True

    async def upload_batch(
        self,
        files: Sequence[FileSource],
        *,
        listener: LedgerListener | None = None,
    ) -> BatchLedger:
        ledger = self.create_ledger(files)
        if listener is not None:
            ledger.subscribe(listener)
        await self.run(ledger, files)
        return ledger

    async def run(self, ledger: BatchLedger, files: Sequence[FileSource]) -> None:
        ledger.running = True
        logger.info("Batch %s started with %d files", ledger.batch_id, len(files))
        try:
            for index, source in enumerate(files):
                await self._process_file(ledger, index, source)
        except Exception as exc:
            ledger.error_message = str(exc) or exc.__class__.__name__
            logger.exception("Batch %s aborted after %d settled files", ledger.batch_id, ledger.settled_count)
            raise BatchAbortedError(f"Upload batch {ledger.batch_id} aborted: {ledger.error_message}") from exc
        finally:
            ledger.running = False

        logger.info(
            "Batch %s finished: %d completed, %d failed",
            ledger.batch_id,
            sum(1 for entry in ledger.entries if entry.status == "completed"),
            sum(1 for entry in ledger.entries if entry.status == "failed"),
        )

    async def _process_file(self, ledger: BatchLedger, index: int, source: FileSource) -> None:
        payload = await self.encoder(source)
        ledger.update(index, status="processing")

        async for event in self.extraction.attempts(payload):
            if isinstance(event, AttemptStarted):
                if event.attempt > 1:
                    ledger.update(index, status="processing")
            elif isinstance(event, AttemptFailed):
                if event.will_retry:
                    ledger.update(index, status="retrying", attempt=event.attempt)

        # The stream always closes with exactly one Settled.
        outcome: Settled = event
        if outcome.ok:
            self._merge(ledger, index, outcome.result)
            return

        message = str(outcome.error)
        ledger.update(index, status="failed", error_message=message)
        logger.error("File %s failed: %s", ledger.entries[index].name, message)

    def _merge(self, ledger: BatchLedger, index: int, result: ExtractionResult) -> None:
        self.store.append(result.questions)
        ledger.update(index, status="completed", question_count=len(result.questions))
