"""
Pydantic schemas for exam papers

SnapshotQuestion / SnapshotAnswer are frozen value objects: an exam owns its own
copy of every question, taken when the paper is generated. They are deliberately
distinct from ChapterQuestion, the live copy that keeps changing with the bank.
"""
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Tuple
from datetime import datetime

from exambank.models.enums import (
    LevelEnum, CategoryEnum, StatusShareEnum, QuestionLabelEnum, AnswerLabelEnum,
)


class ScaleIn(BaseModel):
    """Weight of one (chapter, level) bucket in a generated exam"""
    chapter_id: str
    level: LevelEnum
    percent: int = Field(..., ge=10, le=100)


class ScaleBreakdown(BaseModel):
    """Realized share of a (chapter, level) bucket in a generated exam"""
    chapter_id: str
    level: LevelEnum
    percent: float
    question_count: int
    score: float


class QuestionInfo(BaseModel):
    """Questions hand-picked from one chapter"""
    chapter_id: str
    question_ids: List[str] = Field(..., min_length=1)


class ExamBase(BaseModel):
    label: str = Field(..., max_length=255)
    time: int = Field(..., ge=1, description="Duration in minutes")
    lesson_id: str
    question_label: QuestionLabelEnum = QuestionLabelEnum.END_DOT
    answer_label: AnswerLabelEnum = AnswerLabelEnum.UP_DOT
    sku: Optional[str] = Field(
        None, description="Base code (ABC -> papers ABC123, ABC321, ...), 3-6 letters"
    )
    max_score: float = Field(10.0, gt=0)
    status: StatusShareEnum = StatusShareEnum.PRIVATE
    enable: bool = False
    number_exams: int = Field(1, ge=1, description="Number of papers generated")
    seed: Optional[int] = Field(None, description="For reproducible shuffles")

    @field_validator("sku")
    @classmethod
    def normalize_sku(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        value = value.upper()
        if not (value.isascii() and value.isalpha() and 3 <= len(value) <= 6):
            raise ValueError("SKU must be 3 to 6 letters")
        return value


class ExamCreate(ExamBase):
    """Manual assembly from hand-picked questions"""
    question_infos: List[QuestionInfo] = Field(..., min_length=1)


class ExamGenerate(ExamBase):
    """Random assembly driven by scales"""
    scales: List[ScaleIn] = Field(..., min_length=1)
    total_questions: int = Field(..., ge=1)


class SnapshotAnswer(BaseModel):
    answer_id: str
    label: str
    value: str
    score: Optional[float] = None
    is_correct: bool = False
    remark: Optional[str] = None

    class Config:
        frozen = True


class SnapshotQuestion(BaseModel):
    question_id: str
    chapter_id: str
    label: str
    content: str
    picture: Optional[str] = None
    level: LevelEnum
    category: CategoryEnum
    answers: Tuple[SnapshotAnswer, ...] = ()

    class Config:
        frozen = True


class LessonRef(BaseModel):
    lesson_id: str
    name: str


class ExamResponse(BaseModel):
    id: str
    label: str
    time: int
    sku: str
    max_score: float
    scales: List[ScaleBreakdown]
    questions: List[SnapshotQuestion]
    status: StatusShareEnum
    enable: bool
    question_label: QuestionLabelEnum
    answer_label: AnswerLabelEnum
    owner_id: str
    lesson: LessonRef
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, exam) -> "ExamResponse":
        return cls(
            id=exam.id,
            label=exam.label,
            time=exam.time,
            sku=exam.sku,
            max_score=exam.max_score,
            scales=exam.scales,
            questions=exam.questions,
            status=exam.status,
            enable=exam.enable,
            question_label=exam.question_label,
            answer_label=exam.answer_label,
            owner_id=exam.owner_id,
            lesson=LessonRef(lesson_id=exam.lesson_id, name=exam.lesson_name),
            created_at=exam.created_at,
        )


class ExamUpdate(BaseModel):
    label: Optional[str] = Field(None, max_length=255)
    time: Optional[int] = Field(None, ge=1)
    max_score: Optional[float] = Field(None, gt=0)
    status: Optional[StatusShareEnum] = None
    enable: Optional[bool] = None
    question_label: Optional[QuestionLabelEnum] = None
    answer_label: Optional[AnswerLabelEnum] = None
    lesson_id: Optional[str] = None


class ExamEnableItem(BaseModel):
    exam_id: str
    enable: bool


class ExamsEnableRequest(BaseModel):
    items: List[ExamEnableItem] = Field(..., min_length=1)
