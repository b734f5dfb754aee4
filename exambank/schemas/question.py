"""
Pydantic schemas for the question bank
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from exambank.models.enums import LevelEnum, CategoryEnum, StatusShareEnum
from exambank.schemas.answer import AnswerBase, EmbeddedAnswer
from exambank.utils.label import MAX_ANSWERS


class QuestionCreate(BaseModel):
    """
    Schema for a new question

    Fill-in questions only need the correct answer: set quantity_wrong_answers
    and the wrong answers are generated from it.
    """
    content: str = Field(..., min_length=1)
    remark: Optional[str] = None
    chapter_id: str
    level: LevelEnum
    category: CategoryEnum
    status: StatusShareEnum = StatusShareEnum.PRIVATE
    enable: bool = True
    answers: List[AnswerBase] = []
    answer_ids: List[str] = Field([], description="Catalog answers copied into the question")
    quantity_wrong_answers: Optional[int] = Field(None, ge=0, le=MAX_ANSWERS - 1, description="Generated wrong answers (fill-in)")
    picture_base64: Optional[str] = Field(None, description="Base64 encoded picture")
    picture_name: Optional[str] = Field(None, max_length=200)


class QuestionsCreateRequest(BaseModel):
    questions: List[QuestionCreate] = Field(..., min_length=1)


class QuestionUpdate(BaseModel):
    content: Optional[str] = Field(None, min_length=1)
    remark: Optional[str] = None
    chapter_id: Optional[str] = None
    level: Optional[LevelEnum] = None
    category: Optional[CategoryEnum] = None
    status: Optional[StatusShareEnum] = None
    enable: Optional[bool] = None
    answers: Optional[List[AnswerBase]] = None
    quantity_wrong_answers: Optional[int] = Field(None, ge=0, le=MAX_ANSWERS - 1)


class ChapterQuestion(BaseModel):
    """Live question copy embedded in a chapter"""
    id: str
    content: str
    picture: Optional[str] = None
    remark: Optional[str] = None
    level: LevelEnum
    category: CategoryEnum
    answers: List[EmbeddedAnswer] = []
    enable: bool = True
    status: StatusShareEnum = StatusShareEnum.PRIVATE
    owner_id: str

    class Config:
        from_attributes = True


class QuestionResponse(ChapterQuestion):
    chapter_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class QuestionStatusItem(BaseModel):
    question_id: str
    status: StatusShareEnum


class QuestionsStatusRequest(BaseModel):
    items: List[QuestionStatusItem] = Field(..., min_length=1)


class QuestionEnableItem(BaseModel):
    question_id: str
    enable: bool


class QuestionsEnableRequest(BaseModel):
    items: List[QuestionEnableItem] = Field(..., min_length=1)


class DistractorRequest(BaseModel):
    """Preview generated wrong answers for a fill-in question"""
    content: str
    correct_value: str
    quantity: int = Field(..., ge=1, le=MAX_ANSWERS - 1)
    seed: Optional[int] = None
