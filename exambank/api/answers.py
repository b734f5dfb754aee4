"""
Answer catalog API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging
from typing import List

from exambank.api.deps import get_current_user
from exambank.database import get_db
from exambank.schemas.answer import AnswerResponse, AnswersCreateRequest, AnswerUpdate
from exambank.schemas.common import Caller, IdsRequest, MessageResponse
from exambank.services.answer_service import answer_service

router = APIRouter(prefix="/api/answers", tags=["answers"])
logger = logging.getLogger(__name__)


@router.post("/", response_model=List[AnswerResponse], status_code=201)
async def create_answers(
    request: AnswersCreateRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    """Create reusable answers; fill-in values separate blanks with [__]"""
    return answer_service.create_many(db, request, caller)


@router.get("/", response_model=List[AnswerResponse])
async def list_answers(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    return answer_service.list(db, caller, skip=skip, limit=limit)


@router.get("/{answer_id}", response_model=AnswerResponse)
async def get_answer(
    answer_id: str,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    return answer_service.get(db, answer_id, caller)


@router.put("/{answer_id}", response_model=AnswerResponse)
async def update_answer(
    answer_id: str,
    request: AnswerUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    return answer_service.update(db, answer_id, request, caller)


@router.post("/delete", response_model=MessageResponse)
async def delete_answers(
    request: IdsRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    deleted = answer_service.delete_many(db, request.ids, caller)
    return MessageResponse(message="Answers deleted", affected=deleted)
