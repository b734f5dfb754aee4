"""
Pydantic schemas for answer choices
"""
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from datetime import datetime


class AnswerBase(BaseModel):
    """Answer payload; fill-in values separate blanks with [__]"""
    value: str = Field(..., min_length=1)
    score: Optional[float] = Field(None, ge=0)
    is_correct: bool = False
    remark: Optional[str] = None

    @model_validator(mode="after")
    def correct_answer_needs_score(self):
        if self.is_correct and self.score is None:
            raise ValueError("A correct answer must carry a score")
        return self


class AnswersCreateRequest(BaseModel):
    """Batch creation of catalog answers"""
    answers: List[AnswerBase] = Field(..., min_length=1)


class AnswerUpdate(BaseModel):
    value: Optional[str] = Field(None, min_length=1)
    score: Optional[float] = Field(None, ge=0)
    is_correct: Optional[bool] = None
    remark: Optional[str] = None


class EmbeddedAnswer(AnswerBase):
    """Answer copy stored inside a question"""
    id: str


class AnswerResponse(BaseModel):
    id: str
    value: str
    score: Optional[float] = None
    is_correct: bool
    remark: Optional[str] = None
    owner_id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
