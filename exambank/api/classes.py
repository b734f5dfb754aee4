"""
Class API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging
from typing import List

from exambank.api.deps import get_current_user
from exambank.database import get_db
from exambank.schemas.common import Caller, IdsRequest, MessageResponse
from exambank.schemas.school_class import ClassCreate, ClassResponse, ClassUpdate
from exambank.services.class_service import class_service

router = APIRouter(prefix="/api/classes", tags=["classes"])
logger = logging.getLogger(__name__)


@router.post("/", response_model=ClassResponse, status_code=201)
async def create_class(
    request: ClassCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    return class_service.create(db, request, caller)


@router.get("/", response_model=List[ClassResponse])
async def list_classes(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    return class_service.list(db, caller, skip=skip, limit=limit)


@router.post("/delete", response_model=MessageResponse)
async def delete_classes(
    request: IdsRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    """Classes still following lessons cannot be deleted"""
    deleted = class_service.delete_many(db, request.ids, caller)
    return MessageResponse(message="Classes deleted", affected=deleted)


@router.get("/{class_id}", response_model=ClassResponse)
async def get_class(
    class_id: str,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    return class_service.get(db, class_id, caller)


@router.put("/{class_id}", response_model=ClassResponse)
async def update_class(
    class_id: str,
    request: ClassUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
):
    return class_service.update(db, class_id, request, caller)
