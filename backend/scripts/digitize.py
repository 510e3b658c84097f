from __future__ import annotations

import argparse
import asyncio
import logging
import mimetypes
import sys
from pathlib import Path

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from exam_digitizer.api.v1.dependencies import get_orchestrator, get_question_store  # noqa: E402
from exam_digitizer.application.encoder import LocalFile  # noqa: E402
from exam_digitizer.application.orchestrator import BatchAbortedError, BatchLedger  # noqa: E402
from exam_digitizer.core.config import get_settings  # noqa: E402
from exam_digitizer.core.logging import configure_logging  # noqa: E402


def _guess_content_type(path: Path) -> str | None:
    guessed, _ = mimetypes.guess_type(str(path))
    return guessed


class _LedgerPrinter:
    def __init__(self, max_attempts: int) -> None:
        self.max_attempts = max_attempts
        self._seen: dict[str, tuple[str, int]] = {}

    def __call__(self, ledger: BatchLedger) -> None:
        for entry in ledger.entries:
            state = (entry.status, entry.attempt)
            if self._seen.get(entry.status_id) == state:
                continue
            self._seen[entry.status_id] = state
            suffix = f" (retry {entry.attempt}/{self.max_attempts})" if entry.status == "retrying" else ""
            print(f"[{ledger.percent:5.1f}%] {entry.name}: {entry.status}{suffix}")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Digitize exam images/PDFs into the question store.")
    parser.add_argument("files", nargs="+", type=Path, help="Image or PDF files, processed in order")
    parser.add_argument("--export", type=Path, default=None, help="Write the full question collection as JSON")
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    missing = [str(path) for path in args.files if not path.is_file()]
    if missing:
        print(f"Files not found: {', '.join(missing)}", file=sys.stderr)
        return 2

    orchestrator = get_orchestrator()
    sources = [LocalFile(path=path, content_type=_guess_content_type(path)) for path in args.files]

    try:
        ledger = await orchestrator.upload_batch(sources, listener=_LedgerPrinter(orchestrator.extraction.max_attempts))
    except BatchAbortedError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    completed = sum(1 for entry in ledger.entries if entry.status == "completed")
    added = sum(entry.question_count for entry in ledger.entries)
    print(f"{completed}/{len(ledger.entries)} files completed, {added} questions added")

    store = get_question_store()
    if args.export is not None:
        args.export.write_text(store.export_json(), encoding="utf-8")
        print(f"Exported {len(store)} questions to {args.export}")

    return 0 if completed == len(ledger.entries) else 1


def main(argv: list[str] | None = None) -> int:
    configure_logging(get_settings().log_level)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return asyncio.run(_run(_parse_args(argv)))


if __name__ == "__main__":
    raise SystemExit(main())
