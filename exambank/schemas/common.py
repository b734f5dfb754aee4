"""
Pydantic schemas shared across endpoints
"""
from pydantic import BaseModel, Field
from typing import List

from exambank.config import settings


class Caller(BaseModel):
    """Authenticated caller, resolved upstream"""
    id: str
    roles: List[str] = []

    @property
    def is_admin(self) -> bool:
        return settings.ADMIN_ROLE in self.roles


class MessageResponse(BaseModel):
    """Plain acknowledgement"""
    message: str
    affected: int = 0


class IdsRequest(BaseModel):
    """Batch of record ids"""
    ids: List[str] = Field(..., min_length=1)
