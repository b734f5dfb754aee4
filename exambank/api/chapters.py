"""
Chapter API endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
import logging
from typing import List, Optional

from exambank.api.deps import get_current_user
from exambank.database import get_db
from exambank.models.enums import LevelEnum
from exambank.schemas.chapter import (
    ChapterCreate, ChapterResponse, ChapterUpdate, ChaptersStatusRequest, ChaptersEnableRequest,
)
from exambank.schemas.common import Caller, IdsRequest, MessageResponse
from exambank.schemas.question import ChapterQuestion
from exambank.services.chapter_service import chapter_service
from exambank.utils.shuffle import make_rng

router = APIRouter(prefix="/api/chapters", tags=["chapters"])
logger = logging.getLogger(__name__)


@router.post("/", response_model=ChapterResponse, status_code=201)
async def create_chapter(
    request: ChapterCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    return chapter_service.create(db, request, caller)


@router.get("/", response_model=List[ChapterResponse])
async def list_chapters(
    lesson_id: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    return chapter_service.list(db, caller, lesson_id=lesson_id, skip=skip, limit=limit)


@router.post("/status", response_model=MessageResponse)
async def update_chapter_status(
    request: ChaptersStatusRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    """Status is applied to the chapters and all of their questions"""
    updated = chapter_service.update_status(db, request.items, caller)
    return MessageResponse(message="Chapter status updated", affected=updated)


@router.post("/enable", response_model=MessageResponse)
async def enable_chapters(
    request: ChaptersEnableRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    updated = chapter_service.enable_many(db, request.items, caller)
    return MessageResponse(message="Chapters updated", affected=updated)


@router.post("/delete", response_model=MessageResponse)
async def delete_chapters(
    request: IdsRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    deleted = chapter_service.delete_many(db, request.ids, caller)
    return MessageResponse(message="Chapters deleted", affected=deleted)


@router.get("/{chapter_id}", response_model=ChapterResponse)
async def get_chapter(
    chapter_id: str,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    return chapter_service.get_visible(db, chapter_id, caller)


@router.put("/{chapter_id}", response_model=ChapterResponse)
async def update_chapter(
    chapter_id: str,
    request: ChapterUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    """Changing lesson_id moves the chapter between lessons"""
    return chapter_service.update(db, chapter_id, request, caller)


@router.get("/{chapter_id}/sample", response_model=List[ChapterQuestion])
async def sample_questions(
    chapter_id: str,
    level: LevelEnum,
    quantity: int = Query(..., ge=1),
    seed: Optional[int] = None,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    """Preview a random draw of questions of one level"""
    return chapter_service.sample(db, chapter_id, level, quantity, caller, make_rng(seed))
