"""
Pydantic schemas for lessons
"""
from pydantic import BaseModel, Field
from typing import List, Optional

from exambank.models.enums import StatusShareEnum


class LessonCreate(BaseModel):
    name: str = Field(..., max_length=255)
    label: str = Field("", max_length=255)
    description: str = ""
    credit: int = Field(0, ge=0)
    status: StatusShareEnum = StatusShareEnum.PRIVATE
    class_ids: List[str] = Field([], description="Classes following this lesson")


class LessonUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    label: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    credit: Optional[int] = Field(None, ge=0)
    status: Optional[StatusShareEnum] = None
    enable: Optional[bool] = None
    chapter_ids: Optional[List[str]] = None
    class_ids: Optional[List[str]] = None


class LessonResponse(BaseModel):
    id: str
    name: str
    label: str
    description: str
    credit: int
    status: StatusShareEnum
    enable: bool
    chapter_ids: List[str]
    exam_ids: List[str]
    owner_id: str
    version: int

    class Config:
        from_attributes = True


class LessonEnableItem(BaseModel):
    lesson_id: str
    enable: bool


class LessonsEnableRequest(BaseModel):
    items: List[LessonEnableItem] = Field(..., min_length=1)
