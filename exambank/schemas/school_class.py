"""
Pydantic schemas for classes
"""
from pydantic import BaseModel, Field
from typing import List, Optional

from exambank.models.enums import StatusShareEnum


class ClassCreate(BaseModel):
    name: str = Field(..., max_length=255)
    code: str = Field(..., min_length=1, max_length=64)
    description: str = ""
    start_year: str = Field("", pattern=r"^(\d{4})?$")
    end_year: str = Field("", pattern=r"^(\d{4})?$")
    status: StatusShareEnum = StatusShareEnum.PRIVATE
    lesson_ids: List[str] = []


class ClassUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    code: Optional[str] = Field(None, min_length=1, max_length=64)
    description: Optional[str] = None
    start_year: Optional[str] = Field(None, pattern=r"^(\d{4})?$")
    end_year: Optional[str] = Field(None, pattern=r"^(\d{4})?$")
    status: Optional[StatusShareEnum] = None
    enable: Optional[bool] = None
    lesson_ids: Optional[List[str]] = None


class ClassLessonResponse(BaseModel):
    lesson_id: str
    lesson_name: str
    exam_ids: List[str]

    class Config:
        from_attributes = True


class ClassResponse(BaseModel):
    id: str
    name: str
    code: str
    description: str
    start_year: str
    end_year: str
    status: StatusShareEnum
    enable: bool
    owner_id: str
    lessons: List[ClassLessonResponse] = []

    class Config:
        from_attributes = True
