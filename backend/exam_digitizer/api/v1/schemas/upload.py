from pydantic import BaseModel


class FileStatusItem(BaseModel):
    id: str
    name: str
    status: str
    attempt: int = 0
    questionCount: int = 0
    errorMessage: str | None = None


class BatchResponse(BaseModel):
    batchId: str
    running: bool
    settled: bool
    percent: float = 0.0
    errorMessage: str | None = None
    files: list[FileStatusItem]


class BatchDismissResponse(BaseModel):
    ok: bool = True
    batchId: str
