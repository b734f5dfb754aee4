"""
Class registry service
Classes embed one entry per followed lesson and receive exam-list fan-out
"""
import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from exambank.exceptions import RecordExisted, RecordInUse, RecordUnavailable
from exambank.models import SchoolClass, ClassLesson, Lesson
from exambank.repository import Repository
from exambank.schemas.common import Caller
from exambank.schemas.school_class import ClassCreate, ClassUpdate
from exambank.services.access import ensure_owner, ensure_visible, is_owner

logger = logging.getLogger(__name__)

classes_repo = Repository(SchoolClass, "Class")
lessons_repo = Repository(Lesson, "Lesson")


class ClassService:
    """Service for classes and their embedded lesson entries"""

    def create(self, db: Session, data: ClassCreate, caller: Caller) -> SchoolClass:
        self._ensure_unique(db, caller.id, name=data.name, code=data.code)

        school_class = SchoolClass(
            name=data.name,
            code=data.code,
            description=data.description,
            start_year=data.start_year,
            end_year=data.end_year,
            status=data.status.value,
            owner_id=caller.id,
        )
        classes_repo.insert(db, school_class)

        for lesson_id in dict.fromkeys(data.lesson_ids):
            lesson = lessons_repo.get(db, lesson_id)
            self._add_entry(db, school_class, lesson, caller)

        db.commit()
        db.refresh(school_class)

        logger.info(f"Class created: {school_class.id} ({school_class.code})")
        return school_class

    def get(self, db: Session, class_id: str, caller: Caller) -> SchoolClass:
        school_class = classes_repo.get(db, class_id)
        ensure_visible(school_class, caller, "Class")
        return school_class

    def list(self, db: Session, caller: Caller, skip: int = 0, limit: int = 100) -> List[SchoolClass]:
        criteria = [] if caller.is_admin else [SchoolClass.owner_id == caller.id]
        return classes_repo.find_many(
            db, *criteria, skip=skip, limit=limit, order_by=SchoolClass.created_at.desc()
        )

    def update(self, db: Session, class_id: str, data: ClassUpdate, caller: Caller) -> SchoolClass:
        school_class = classes_repo.get(db, class_id)
        ensure_owner(school_class, caller, "Class")

        self._ensure_unique(
            db, school_class.owner_id, name=data.name, code=data.code, exclude_id=class_id
        )

        patch = data.model_dump(exclude_unset=True, exclude={"lesson_ids"})
        if data.status is not None:
            patch["status"] = data.status.value
        classes_repo.update_by_id(db, class_id, patch)

        if data.lesson_ids is not None:
            wanted = list(dict.fromkeys(data.lesson_ids))
            school_class.lessons = [
                entry for entry in school_class.lessons if entry.lesson_id in wanted
            ]
            current = {entry.lesson_id for entry in school_class.lessons}
            for lesson_id in wanted:
                if lesson_id not in current:
                    self._add_entry(db, school_class, lessons_repo.get(db, lesson_id), caller)

        db.commit()
        db.refresh(school_class)

        logger.info(f"Class updated: {class_id}")
        return school_class

    def delete_many(self, db: Session, class_ids: List[str], caller: Caller) -> int:
        classes = [classes_repo.get(db, class_id) for class_id in dict.fromkeys(class_ids)]
        for school_class in classes:
            ensure_owner(school_class, caller, "Class")
            if school_class.lessons:
                raise RecordInUse(f"Class {school_class.id}", "its lessons")

        for school_class in classes:
            db.delete(school_class)
        db.commit()

        logger.info(f"Deleted {len(classes)} class(es)")
        return len(classes)

    # Fan-out used by lessons and exams (no commit: the caller owns the transaction)

    def attach_lesson(self, db: Session, class_id: str, lesson: Lesson, caller: Caller) -> None:
        school_class = classes_repo.get(db, class_id)
        if not any(entry.lesson_id == lesson.id for entry in school_class.lessons):
            self._add_entry(db, school_class, lesson, caller)

    def detach_lesson(self, db: Session, lesson_id: str, class_ids: Optional[List[str]] = None) -> int:
        query = db.query(ClassLesson).filter(ClassLesson.lesson_id == lesson_id)
        if class_ids is not None:
            query = query.filter(ClassLesson.class_id.in_(class_ids))
        entries = query.all()
        for entry in entries:
            db.delete(entry)
        db.flush()
        return len(entries)

    def find_by_lesson(self, db: Session, lesson_id: str) -> List[SchoolClass]:
        return (
            db.query(SchoolClass)
            .join(ClassLesson, ClassLesson.class_id == SchoolClass.id)
            .filter(ClassLesson.lesson_id == lesson_id)
            .all()
        )

    def rename_lesson(self, db: Session, lesson_id: str, name: str) -> int:
        return (
            db.query(ClassLesson)
            .filter(ClassLesson.lesson_id == lesson_id)
            .update({ClassLesson.lesson_name: name}, synchronize_session="fetch")
        )

    def add_lesson_exams(self, db: Session, lesson_id: str, exam_ids: List[str]) -> int:
        entries = db.query(ClassLesson).filter(ClassLesson.lesson_id == lesson_id).all()
        for entry in entries:
            entry.exam_ids = list(entry.exam_ids or []) + [
                exam_id for exam_id in exam_ids if exam_id not in (entry.exam_ids or [])
            ]
        db.flush()
        return len(entries)

    def remove_lesson_exams(self, db: Session, lesson_id: str, exam_ids: List[str]) -> int:
        removed = set(exam_ids)
        entries = db.query(ClassLesson).filter(ClassLesson.lesson_id == lesson_id).all()
        for entry in entries:
            entry.exam_ids = [exam_id for exam_id in entry.exam_ids or [] if exam_id not in removed]
        db.flush()
        return len(entries)

    def _add_entry(self, db: Session, school_class: SchoolClass, lesson: Lesson, caller: Caller) -> None:
        if not is_owner(school_class, caller):
            raise RecordUnavailable(f"Class {school_class.id}")
        school_class.lessons.append(
            ClassLesson(
                class_id=school_class.id,
                lesson_id=lesson.id,
                lesson_name=lesson.name,
                exam_ids=list(lesson.exam_ids or []),
            )
        )
        db.flush()

    def _ensure_unique(
        self,
        db: Session,
        owner_id: str,
        name: Optional[str] = None,
        code: Optional[str] = None,
        exclude_id: Optional[str] = None,
    ) -> None:
        """Name and code are unique per owner (case-insensitive)"""
        checks = [("name", SchoolClass.name, name), ("code", SchoolClass.code, code)]
        for field, column, value in checks:
            if value is None:
                continue
            criteria = [
                SchoolClass.owner_id == owner_id,
                func.lower(column) == value.strip().lower(),
            ]
            if exclude_id:
                criteria.append(SchoolClass.id != exclude_id)
            if classes_repo.exists(db, *criteria):
                raise RecordExisted(f"Class {field} '{value}'")


# Global instance
class_service = ClassService()
