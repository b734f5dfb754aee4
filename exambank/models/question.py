"""
Question model - the live, editable question bank entry
"""
from sqlalchemy import Column, String, Boolean, Text, TIMESTAMP, ForeignKey, func
from exambank.database import Base, JSONDocument
from exambank.models.enums import StatusShareEnum
import uuid


class Question(Base):
    """
    Questions table - each row embeds its answer choices as a JSON list

    A copy of every question is also embedded in its chapter (chapters.questions);
    the question service keeps both in step.
    """
    __tablename__ = "questions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    content = Column(Text, nullable=False)
    picture = Column(String(512), nullable=True)
    remark = Column(Text, nullable=True)
    level = Column(String(20), nullable=False, index=True)
    category = Column(String(30), nullable=False)
    answers = Column(JSONDocument, nullable=False, default=list)  # [{id, value, score, is_correct, remark}]
    chapter_id = Column(String(36), ForeignKey("chapters.id"), nullable=False, index=True)
    owner_id = Column(String(64), nullable=False, index=True)
    enable = Column(Boolean, default=True, nullable=False)
    status = Column(String(20), default=StatusShareEnum.PRIVATE.value, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Question(id={self.id}, level={self.level}, category={self.category})>"
