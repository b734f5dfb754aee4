"""
Exam model - immutable exam paper snapshots
"""
from sqlalchemy import Column, String, Integer, Float, Boolean, TIMESTAMP, ForeignKey, func
from exambank.database import Base, JSONDocument
from exambank.models.enums import StatusShareEnum, QuestionLabelEnum, AnswerLabelEnum
import uuid


class Exam(Base):
    """
    Exams table - questions and scales are stored by value, never by reference

    Only metadata (label, time, max_score, status, enable, labels) and the lesson
    association change after creation.
    """
    __tablename__ = "exams"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    label = Column(String(255), nullable=False)
    time = Column(Integer, nullable=False)  # minutes
    sku = Column(String(16), nullable=False, index=True)
    max_score = Column(Float, default=10.0, nullable=False)
    scales = Column(JSONDocument, nullable=False, default=list)
    questions = Column(JSONDocument, nullable=False, default=list)
    status = Column(String(20), default=StatusShareEnum.PRIVATE.value, nullable=False)
    enable = Column(Boolean, default=False, nullable=False)
    question_label = Column(String(20), default=QuestionLabelEnum.END_DOT.value, nullable=False)
    answer_label = Column(String(20), default=AnswerLabelEnum.UP_DOT.value, nullable=False)
    lesson_id = Column(String(36), ForeignKey("lessons.id"), nullable=False, index=True)
    lesson_name = Column(String(255), nullable=False)  # denormalized copy
    owner_id = Column(String(64), nullable=False, index=True)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Exam(id={self.id}, sku={self.sku}, lesson_id={self.lesson_id})>"


class ExamQuestionRef(Base):
    """
    Reverse index question -> exam, written once when the exam is created

    Lets question deletion detect usage without scanning exam snapshots.
    """
    __tablename__ = "exam_question_refs"

    exam_id = Column(String(36), ForeignKey("exams.id", ondelete="CASCADE"), primary_key=True)
    question_id = Column(String(36), primary_key=True, index=True)
