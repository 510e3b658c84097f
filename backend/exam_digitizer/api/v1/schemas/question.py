from pydantic import BaseModel, Field


class OptionItem(BaseModel):
    id: str
    text: str
    isCorrect: bool


class QuestionItem(BaseModel):
    id: str
    text: str
    options: list[OptionItem] = Field(default_factory=list)
    subject: str
    explanation: str | None = None
    imageUrl: str | None = None
    createdAt: int


class QuestionListResponse(BaseModel):
    questions: list[QuestionItem]
    total: int


class QuestionDeleteResponse(BaseModel):
    ok: bool = True
    questionId: str
    deleted: bool


class SubjectCountItem(BaseModel):
    subject: str
    count: int


class SubjectCountResponse(BaseModel):
    subjects: list[SubjectCountItem]
    total: int
