"""
Pydantic schemas for chapter-related requests and responses
"""
from pydantic import BaseModel, Field
from typing import List, Optional

from exambank.models.enums import StatusShareEnum
from exambank.schemas.question import ChapterQuestion


class ChapterCreate(BaseModel):
    """Schema for creating a chapter inside a lesson"""
    name: str = Field(..., max_length=255)
    label: str = Field("", max_length=255)
    description: Optional[str] = None
    status: StatusShareEnum = StatusShareEnum.PRIVATE
    lesson_id: str


class ChapterUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    label: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    enable: Optional[bool] = None
    lesson_id: Optional[str] = None


class ChapterResponse(BaseModel):
    id: str
    name: str
    label: str
    description: Optional[str] = None
    status: StatusShareEnum
    enable: bool
    lesson_id: Optional[str] = None
    owner_id: str
    questions: List[ChapterQuestion] = []

    class Config:
        from_attributes = True


class ChapterStatusItem(BaseModel):
    chapter_id: str
    status: StatusShareEnum


class ChaptersStatusRequest(BaseModel):
    items: List[ChapterStatusItem] = Field(..., min_length=1)


class ChapterEnableItem(BaseModel):
    chapter_id: str
    enable: bool


class ChaptersEnableRequest(BaseModel):
    items: List[ChapterEnableItem] = Field(..., min_length=1)
