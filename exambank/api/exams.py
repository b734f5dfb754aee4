"""
Exam generation API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging
from typing import List

from exambank.api.deps import get_current_user
from exambank.database import get_db
from exambank.schemas.common import Caller, IdsRequest, MessageResponse
from exambank.schemas.exam import ExamCreate, ExamGenerate, ExamResponse, ExamUpdate, ExamsEnableRequest
from exambank.services.exam_service import exam_service

router = APIRouter(prefix="/api/exams", tags=["exams"])
logger = logging.getLogger(__name__)


@router.post("/", response_model=List[ExamResponse], status_code=201)
async def create_exams(
    request: ExamCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    """
    Assemble papers from hand-picked questions

    Every paper shuffles the same questions and answers and gets its own SKU.
    """
    exams = exam_service.create(db, request, caller)
    return [ExamResponse.from_model(exam) for exam in exams]


@router.post("/generate", response_model=List[ExamResponse], status_code=201)
async def generate_exams(
    request: ExamGenerate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    """
    Draw papers at random according to scales

    - Scale percentages must add up to 100
    - Each scale takes percent * total_questions / 100 questions of its level
      from its chapter, and fails when the chapter has fewer
    - Only the lesson owner can generate
    """
    exams = exam_service.generate(db, request, caller)
    return [ExamResponse.from_model(exam) for exam in exams]


@router.post("/enable", response_model=MessageResponse)
async def enable_exams(
    request: ExamsEnableRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    updated = exam_service.enable_many(db, request.items, caller)
    return MessageResponse(message="Exams updated", affected=updated)


@router.post("/delete", response_model=MessageResponse)
async def delete_exams(
    request: IdsRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    deleted = exam_service.delete_many(db, request.ids, caller)
    return MessageResponse(message="Exams deleted", affected=deleted)


@router.get("/{exam_id}", response_model=ExamResponse)
async def get_exam(
    exam_id: str,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    """Exam detail (cached)"""
    return exam_service.get(db, exam_id, caller)


@router.put("/{exam_id}", response_model=ExamResponse)
async def update_exam(
    exam_id: str,
    request: ExamUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    """Metadata, label schemes and lesson; question content never changes"""
    exam = exam_service.update(db, exam_id, request, caller)
    return ExamResponse.from_model(exam)
