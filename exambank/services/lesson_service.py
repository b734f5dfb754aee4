"""
Lesson service
Lessons reference their chapters and exams by id; renames and deletions are
propagated to exams, chapters and class entries in the same transaction.
"""
import logging
from typing import List

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from exambank.exceptions import ConcurrentModification, RecordUnavailable
from exambank.models import Lesson, Chapter, Exam, ExamQuestionRef
from exambank.repository import Repository
from exambank.schemas.common import Caller
from exambank.schemas.lesson import LessonCreate, LessonUpdate, LessonEnableItem
from exambank.services.access import ensure_owner, ensure_visible, is_owner
from exambank.services.class_service import class_service
from exambank.services.lookups import ClassFanout
from exambank.utils.cache import cache_service

logger = logging.getLogger(__name__)

lessons_repo = Repository(Lesson, "Lesson")
chapters_repo = Repository(Chapter, "Chapter")
exams_repo = Repository(Exam, "Exam")


class LessonService:
    """Service for lessons"""

    def __init__(self, classes: ClassFanout):
        self.classes = classes

    def create(self, db: Session, data: LessonCreate, caller: Caller) -> Lesson:
        lesson = Lesson(
            name=data.name,
            label=data.label,
            description=data.description,
            credit=data.credit,
            status=data.status.value,
            chapter_ids=[],
            exam_ids=[],
            owner_id=caller.id,
        )
        lessons_repo.insert(db, lesson)

        for class_id in dict.fromkeys(data.class_ids):
            self.classes.attach_lesson(db, class_id, lesson, caller)

        db.commit()
        db.refresh(lesson)

        logger.info(f"Lesson created: {lesson.id} ({lesson.name})")
        return lesson

    def get(self, db: Session, lesson_id: str, caller: Caller) -> Lesson:
        lesson = lessons_repo.get(db, lesson_id)
        ensure_visible(lesson, caller, "Lesson")
        return lesson

    def get_lesson(self, db: Session, lesson_id: str) -> Lesson:
        return lessons_repo.get(db, lesson_id)

    def get_owned(self, db: Session, lesson_id: str, caller: Caller, allow_admin: bool = True) -> Lesson:
        lesson = lessons_repo.get(db, lesson_id)
        ensure_owner(lesson, caller, "Lesson", allow_admin=allow_admin)
        return lesson

    def list(self, db: Session, caller: Caller, skip: int = 0, limit: int = 100) -> List[Lesson]:
        criteria = [] if caller.is_admin else [Lesson.owner_id == caller.id]
        return lessons_repo.find_many(
            db, *criteria, skip=skip, limit=limit, order_by=Lesson.created_at.desc()
        )

    def get_chapter_ids(self, db: Session, lesson_id: str) -> List[str]:
        return list(lessons_repo.get(db, lesson_id).chapter_ids or [])

    def update(self, db: Session, lesson_id: str, data: LessonUpdate, caller: Caller) -> Lesson:
        lesson = self.get_owned(db, lesson_id, caller)

        patch = data.model_dump(exclude_unset=True, exclude={"chapter_ids", "class_ids"})
        if data.status is not None:
            patch["status"] = data.status.value
        renamed = data.name is not None and data.name != lesson.name
        for field, value in patch.items():
            if value is not None:
                setattr(lesson, field, value)

        exam_ids = list(lesson.exam_ids or [])
        if renamed:
            exams_repo.update_many(db, [Exam.lesson_id == lesson.id], {Exam.lesson_name: lesson.name})
            self.classes.rename_lesson(db, lesson.id, lesson.name)

        if data.chapter_ids is not None:
            self._replace_chapters(db, lesson, list(dict.fromkeys(data.chapter_ids)), caller)

        if data.class_ids is not None:
            wanted = list(dict.fromkeys(data.class_ids))
            current = {school_class.id for school_class in self.classes.find_by_lesson(db, lesson.id)}
            self.classes.detach_lesson(db, lesson.id, [class_id for class_id in current if class_id not in wanted])
            for class_id in wanted:
                if class_id not in current:
                    self.classes.attach_lesson(db, class_id, lesson, caller)

        self._commit(db, lesson_id)
        db.refresh(lesson)

        if renamed:
            cache_service.invalidate_exams(exam_ids)

        logger.info(f"Lesson updated: {lesson_id}")
        return lesson

    def enable_many(self, db: Session, items: List[LessonEnableItem], caller: Caller) -> int:
        lessons = [(self.get_owned(db, item.lesson_id, caller), item.enable) for item in items]
        for lesson, enable in lessons:
            lesson.enable = enable
        self._commit(db, ", ".join(lesson.id for lesson, _ in lessons))

        logger.info(f"Enable flag updated on {len(lessons)} lesson(s)")
        return len(lessons)

    def delete_many(self, db: Session, lesson_ids: List[str], caller: Caller) -> int:
        """Delete lessons with their exams; chapters are detached, not deleted"""
        lessons = [self.get_owned(db, lesson_id, caller) for lesson_id in dict.fromkeys(lesson_ids)]

        removed_exams: List[str] = []
        for lesson in lessons:
            self.classes.detach_lesson(db, lesson.id)
            chapters_repo.update_many(db, [Chapter.lesson_id == lesson.id], {Chapter.lesson_id: None})

            exam_ids = [exam.id for exam in exams_repo.find_many(db, Exam.lesson_id == lesson.id)]
            if exam_ids:
                db.query(ExamQuestionRef).filter(
                    ExamQuestionRef.exam_id.in_(exam_ids)
                ).delete(synchronize_session="fetch")
                exams_repo.delete_many(db, exam_ids)
            removed_exams.extend(exam_ids)
            db.delete(lesson)

        self._commit(db, ", ".join(lesson.id for lesson in lessons))
        cache_service.invalidate_exams(removed_exams)

        logger.info(f"Deleted {len(lessons)} lesson(s) and {len(removed_exams)} exam(s)")
        return len(lessons)

    # Reference maintenance used by chapters and exams (no commit)

    def attach_chapter(self, db: Session, lesson_id: str, chapter_id: str) -> None:
        lesson = lessons_repo.get(db, lesson_id)
        if chapter_id not in (lesson.chapter_ids or []):
            lesson.chapter_ids = list(lesson.chapter_ids or []) + [chapter_id]
        db.flush()

    def detach_chapter(self, db: Session, lesson_id: str, chapter_id: str) -> None:
        lesson = lessons_repo.find_by_id(db, lesson_id)
        if lesson is not None and chapter_id in (lesson.chapter_ids or []):
            lesson.chapter_ids = [cid for cid in lesson.chapter_ids if cid != chapter_id]
            db.flush()

    def append_exams(self, db: Session, lesson: Lesson, exam_ids: List[str]) -> None:
        lesson.exam_ids = list(lesson.exam_ids or []) + [
            exam_id for exam_id in exam_ids if exam_id not in (lesson.exam_ids or [])
        ]
        db.flush()

    def remove_exams(self, db: Session, lesson_id: str, exam_ids: List[str]) -> None:
        lesson = lessons_repo.find_by_id(db, lesson_id)
        if lesson is None:
            return
        removed = set(exam_ids)
        lesson.exam_ids = [exam_id for exam_id in lesson.exam_ids or [] if exam_id not in removed]
        db.flush()

    def _replace_chapters(self, db: Session, lesson: Lesson, chapter_ids: List[str], caller: Caller) -> None:
        """
        Point the lesson at exactly `chapter_ids`

        Dropped chapters lose their lesson; chapters taken from another lesson are
        removed from that lesson's list first.
        """
        chapters = [chapters_repo.get(db, chapter_id) for chapter_id in chapter_ids]
        for chapter in chapters:
            if not is_owner(chapter, caller):
                raise RecordUnavailable(f"Chapter {chapter.id}")

        for chapter_id in lesson.chapter_ids or []:
            if chapter_id not in chapter_ids:
                chapters_repo.update_many(
                    db, [Chapter.id == chapter_id, Chapter.lesson_id == lesson.id], {Chapter.lesson_id: None}
                )

        for chapter in chapters:
            if chapter.lesson_id and chapter.lesson_id != lesson.id:
                self.detach_chapter(db, chapter.lesson_id, chapter.id)
            chapter.lesson_id = lesson.id

        lesson.chapter_ids = chapter_ids
        db.flush()

    def _commit(self, db: Session, label: str) -> None:
        try:
            db.commit()
        except StaleDataError:
            db.rollback()
            logger.warning(f"Lesson {label} changed during update")
            raise ConcurrentModification(f"Lesson {label} was modified concurrently, please retry")


# Global instance
lesson_service = LessonService(classes=class_service)
