"""
Chapter model - groups questions and owns the sampling pool
"""
from sqlalchemy import Column, String, Boolean, Text, TIMESTAMP, ForeignKey, func
from exambank.database import Base, JSONDocument
from exambank.models.enums import StatusShareEnum
import uuid


class Chapter(Base):
    """
    Chapters table - questions are embedded as a point-in-time JSON list
    """
    __tablename__ = "chapters"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    label = Column(String(255), default="")
    description = Column(Text, nullable=True)
    status = Column(String(20), default=StatusShareEnum.PRIVATE.value, nullable=False)
    enable = Column(Boolean, default=True, nullable=False)
    lesson_id = Column(String(36), ForeignKey("lessons.id"), nullable=True, index=True)
    questions = Column(JSONDocument, nullable=False, default=list)
    owner_id = Column(String(64), nullable=False, index=True)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Chapter(id={self.id}, name={self.name})>"
