"""
Answer model - reusable answer choices (answer catalog)
"""
from sqlalchemy import Column, String, Float, Boolean, Text, TIMESTAMP, func
from exambank.database import Base
import uuid


class Answer(Base):
    """
    Answers table - catalog entries that questions copy into their embedded list
    """
    __tablename__ = "answers"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # Fill-in answers separate the blank values with "[__]"
    value = Column(Text, nullable=False)
    score = Column(Float, nullable=True)
    is_correct = Column(Boolean, default=False, nullable=False)
    remark = Column(Text, nullable=True)
    owner_id = Column(String(64), nullable=False, index=True)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Answer(id={self.id}, is_correct={self.is_correct})>"
