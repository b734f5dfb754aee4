"""
Lesson API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging
from typing import List, Optional

from exambank.api.deps import get_current_user
from exambank.database import get_db
from exambank.models.enums import StatusShareEnum
from exambank.schemas.common import Caller, IdsRequest, MessageResponse
from exambank.schemas.exam import ExamResponse
from exambank.schemas.lesson import LessonCreate, LessonResponse, LessonUpdate, LessonsEnableRequest
from exambank.services.exam_service import exam_service
from exambank.services.lesson_service import lesson_service

router = APIRouter(prefix="/api/lessons", tags=["lessons"])
logger = logging.getLogger(__name__)


@router.post("/", response_model=LessonResponse, status_code=201)
async def create_lesson(
    request: LessonCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    return lesson_service.create(db, request, caller)


@router.get("/", response_model=List[LessonResponse])
async def list_lessons(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    return lesson_service.list(db, caller, skip=skip, limit=limit)


@router.post("/enable", response_model=MessageResponse)
async def enable_lessons(
    request: LessonsEnableRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    updated = lesson_service.enable_many(db, request.items, caller)
    return MessageResponse(message="Lessons updated", affected=updated)


@router.post("/delete", response_model=MessageResponse)
async def delete_lessons(
    request: IdsRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    """Deletes the lessons and their exams; chapters are kept and detached"""
    deleted = lesson_service.delete_many(db, request.ids, caller)
    return MessageResponse(message="Lessons deleted", affected=deleted)


@router.get("/{lesson_id}", response_model=LessonResponse)
async def get_lesson(
    lesson_id: str,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    return lesson_service.get(db, lesson_id, caller)


@router.put("/{lesson_id}", response_model=LessonResponse)
async def update_lesson(
    lesson_id: str,
    request: LessonUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    """
    Update a lesson

    - A new name is copied into its exams and class entries
    - chapter_ids replaces the chapter set, re-linking moved chapters
    - class_ids replaces the classes following the lesson
    """
    return lesson_service.update(db, lesson_id, request, caller)


@router.get("/{lesson_id}/exams", response_model=List[ExamResponse])
async def list_lesson_exams(
    lesson_id: str,
    status: Optional[StatusShareEnum] = None,
    enable: Optional[bool] = None,
    sku: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    exams = exam_service.list_by_lesson(
        db, lesson_id, caller, status=status, enable=enable, sku=sku, skip=skip, limit=limit
    )
    return [ExamResponse.from_model(exam) for exam in exams]
