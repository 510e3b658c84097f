from __future__ import annotations

import logging
from collections.abc import Sequence

from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response

from exam_digitizer.api.v1.dependencies import provide_orchestrator, provide_question_store
from exam_digitizer.api.v1.schemas.question import (
    QuestionDeleteResponse,
    QuestionItem,
    QuestionListResponse,
    SubjectCountItem,
    SubjectCountResponse,
)
from exam_digitizer.api.v1.schemas.upload import BatchDismissResponse, BatchResponse, FileStatusItem
from exam_digitizer.application.encoder import FileSource, InMemoryFile
from exam_digitizer.application.orchestrator import BatchAbortedError, BatchLedger, UploadOrchestrator
from exam_digitizer.application.question_store import QuestionStore
from exam_digitizer.core.config import get_settings
from exam_digitizer.domain.codec import question_to_dict
from exam_digitizer.domain.models import Subject

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["v1"])


def _batch_response(ledger: BatchLedger) -> BatchResponse:
    return BatchResponse(
        batchId=ledger.batch_id,
        running=ledger.running,
        settled=ledger.settled,
        percent=round(ledger.percent, 2),
        errorMessage=ledger.error_message,
        files=[
            FileStatusItem(
                id=entry.status_id,
                name=entry.name,
                status=entry.status,
                attempt=entry.attempt,
                questionCount=entry.question_count,
                errorMessage=entry.error_message,
            )
            for entry in ledger.entries
        ],
    )


async def _run_batch(orchestrator: UploadOrchestrator, ledger: BatchLedger, sources: Sequence[FileSource]) -> None:
    try:
        await orchestrator.run(ledger, sources)
    except BatchAbortedError as exc:
        # The traceback is logged by the orchestrator and the ledger carries the message.
        logger.info("Background batch %s ended early: %s", ledger.batch_id, exc)


@router.post("/uploads", response_model=BatchResponse)
async def upload_files(
    background_tasks: BackgroundTasks,
    files: list[UploadFile] = File(...),
    orchestrator: UploadOrchestrator = Depends(provide_orchestrator),
):
    if orchestrator.is_processing:
        raise HTTPException(status_code=409, detail="Another upload batch is still processing")

    sources: list[FileSource] = []
    for upload in files:
        sources.append(
            InMemoryFile(
                filename=upload.filename,
                payload=await upload.read(),
                content_type=upload.content_type,
            )
        )

    ledger = orchestrator.create_ledger(sources)
    if get_settings().sync_processing:
        try:
            await orchestrator.run(ledger, sources)
        except BatchAbortedError as exc:
            raise HTTPException(status_code=500, detail="Upload batch aborted") from exc
    else:
        # Counts as processing from now on, not from when the task is scheduled.
        ledger.running = True
        background_tasks.add_task(_run_batch, orchestrator, ledger, sources)

    return _batch_response(ledger)


@router.get("/uploads/{batchId}", response_model=BatchResponse)
async def get_batch(batchId: str, orchestrator: UploadOrchestrator = Depends(provide_orchestrator)):
    ledger = orchestrator.get_batch(batchId)
    if ledger is None:
        raise HTTPException(status_code=404, detail="Batch not found")
    return _batch_response(ledger)


@router.delete("/uploads/{batchId}", response_model=BatchDismissResponse)
async def dismiss_batch(batchId: str, orchestrator: UploadOrchestrator = Depends(provide_orchestrator)):
    ledger = orchestrator.get_batch(batchId)
    if ledger is None:
        raise HTTPException(status_code=404, detail="Batch not found")
    if not orchestrator.dismiss(batchId):
        raise HTTPException(status_code=409, detail="Batch is still processing")
    return BatchDismissResponse(batchId=batchId)


@router.get("/questions", response_model=QuestionListResponse)
async def list_questions(
    q: str = Query(default=""),
    subject: Subject | None = Query(default=None),
    store: QuestionStore = Depends(provide_question_store),
):
    rows = store.search(q, subject=subject)
    return QuestionListResponse(
        questions=[QuestionItem(**question_to_dict(row)) for row in rows],
        total=len(rows),
    )


@router.get("/questions/{questionId}", response_model=QuestionItem)
async def get_question(questionId: str, store: QuestionStore = Depends(provide_question_store)):
    row = store.get(questionId)
    if row is None:
        raise HTTPException(status_code=404, detail="Question not found")
    return QuestionItem(**question_to_dict(row))


@router.delete("/questions/{questionId}", response_model=QuestionDeleteResponse)
async def delete_question(questionId: str, store: QuestionStore = Depends(provide_question_store)):
    deleted = store.remove(questionId)
    return QuestionDeleteResponse(questionId=questionId, deleted=deleted)


@router.get("/subjects", response_model=SubjectCountResponse)
async def subject_counts(store: QuestionStore = Depends(provide_question_store)):
    counts = store.count_by_subject()
    return SubjectCountResponse(
        subjects=[SubjectCountItem(subject=item.value, count=counts.get(item, 0)) for item in Subject],
        total=len(store),
    )


@router.get("/export")
async def export_questions(store: QuestionStore = Depends(provide_question_store)):
    return Response(
        content=store.export_json(),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{store.export_filename()}"'},
    )
