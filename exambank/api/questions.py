"""
Question bank API endpoints
"""
from fastapi import APIRouter, Depends, UploadFile, File
from sqlalchemy.orm import Session
import logging
from typing import List, Optional

from exambank.api.deps import get_current_user
from exambank.database import get_db
from exambank.models.enums import LevelEnum, CategoryEnum, StatusShareEnum
from exambank.schemas.answer import AnswerBase
from exambank.schemas.common import Caller, IdsRequest, MessageResponse
from exambank.schemas.question import (
    DistractorRequest, QuestionResponse, QuestionUpdate, QuestionsCreateRequest,
    QuestionsStatusRequest, QuestionsEnableRequest,
)
from exambank.services.question_service import question_service

router = APIRouter(prefix="/api/questions", tags=["questions"])
logger = logging.getLogger(__name__)


@router.post("/", response_model=List[QuestionResponse], status_code=201)
async def create_questions(
    request: QuestionsCreateRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    """
    Create questions in chapters the caller owns

    - Inline answers and catalog answers (answer_ids) are copied in
    - Fill-in questions only carry the correct answer; quantity_wrong_answers
      wrong answers are generated from it
    - picture_base64 is uploaded before the question is stored
    """
    return await question_service.create_many(db, request, caller)


@router.get("/", response_model=List[QuestionResponse])
async def list_questions(
    chapter_id: Optional[str] = None,
    level: Optional[LevelEnum] = None,
    category: Optional[CategoryEnum] = None,
    status: Optional[StatusShareEnum] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    return question_service.list(
        db, caller,
        chapter_id=chapter_id, level=level, category=category, status=status,
        skip=skip, limit=limit,
    )


@router.post("/distractors", response_model=List[AnswerBase])
async def preview_distractors(
    request: DistractorRequest,
    caller: Caller = Depends(get_current_user)
):
    """Preview generated wrong answers for fill-in content"""
    return question_service.preview_distractors(request)


@router.post("/status", response_model=MessageResponse)
async def update_question_status(
    request: QuestionsStatusRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    updated = question_service.update_status(db, request.items, caller)
    return MessageResponse(message="Question status updated", affected=updated)


@router.post("/enable", response_model=MessageResponse)
async def enable_questions(
    request: QuestionsEnableRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    updated = question_service.enable_many(db, request.items, caller)
    return MessageResponse(message="Questions updated", affected=updated)


@router.post("/delete", response_model=MessageResponse)
async def delete_questions(
    request: IdsRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    """Questions used by an exam cannot be deleted"""
    deleted = question_service.delete_many(db, request.ids, caller)
    return MessageResponse(message="Questions deleted", affected=deleted)


@router.get("/{question_id}", response_model=QuestionResponse)
async def get_question(
    question_id: str,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    return question_service.get(db, question_id, caller)


@router.put("/{question_id}", response_model=QuestionResponse)
async def update_question(
    question_id: str,
    request: QuestionUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    """Existing exams keep their own copy of the question"""
    return question_service.update(db, question_id, request, caller)


@router.put("/{question_id}/picture", response_model=QuestionResponse)
async def upload_question_picture(
    question_id: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    content = await file.read()
    logger.info(f"Uploading picture for question {question_id}: {file.filename}")
    return await question_service.update_picture(db, question_id, content, file.filename, caller)
