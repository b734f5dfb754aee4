"""
Class model - a cohort following a set of lessons
"""
from sqlalchemy import Column, String, Boolean, Text, TIMESTAMP, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
from exambank.database import Base, JSONDocument
from exambank.models.enums import StatusShareEnum
import uuid


class SchoolClass(Base):
    """
    Classes table - code is unique per owner
    """
    __tablename__ = "classes"
    __table_args__ = (UniqueConstraint("owner_id", "code", name="uq_classes_owner_code"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    code = Column(String(64), nullable=False)
    description = Column(Text, default="")
    start_year = Column(String(4), default="")
    end_year = Column(String(4), default="")
    status = Column(String(20), default=StatusShareEnum.PRIVATE.value, nullable=False)
    enable = Column(Boolean, default=True, nullable=False)
    owner_id = Column(String(64), nullable=False, index=True)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    lessons = relationship(
        "ClassLesson",
        cascade="all, delete-orphan",
        order_by="ClassLesson.lesson_name",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<SchoolClass(id={self.id}, code={self.code})>"


class ClassLesson(Base):
    """
    Embedded lesson entry of a class, receiving exam-list fan-out
    """
    __tablename__ = "class_lessons"

    class_id = Column(String(36), ForeignKey("classes.id", ondelete="CASCADE"), primary_key=True)
    lesson_id = Column(String(36), primary_key=True, index=True)
    lesson_name = Column(String(255), nullable=False)
    exam_ids = Column(JSONDocument, nullable=False, default=list)

    def __repr__(self):
        return f"<ClassLesson(class_id={self.class_id}, lesson_id={self.lesson_id})>"
