"""
Lesson model - course unit grouping chapters and generated exams
"""
from sqlalchemy import Column, String, Integer, Boolean, Text, TIMESTAMP, func
from exambank.database import Base, JSONDocument
from exambank.models.enums import StatusShareEnum
import uuid


class Lesson(Base):
    """
    Lessons table - chapter and exam references are JSON id lists

    `version` is a compare-and-swap counter: concurrent writers appending to
    exam_ids cannot silently overwrite each other.
    """
    __tablename__ = "lessons"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    label = Column(String(255), default="")
    description = Column(Text, default="")
    credit = Column(Integer, default=0)
    status = Column(String(20), default=StatusShareEnum.PRIVATE.value, nullable=False)
    enable = Column(Boolean, default=True, nullable=False)
    chapter_ids = Column(JSONDocument, nullable=False, default=list)
    exam_ids = Column(JSONDocument, nullable=False, default=list)
    owner_id = Column(String(64), nullable=False, index=True)
    version = Column(Integer, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Lesson(id={self.id}, name={self.name}, version={self.version})>"
