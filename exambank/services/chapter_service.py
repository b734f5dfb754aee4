"""
Chapter service
Handles chapter CRUD, the embedded question copies and random sampling
"""
import logging
import random
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from exambank.exceptions import InsufficientQuestions, RecordExisted, RecordInUse, RecordUnavailable
from exambank.models import Chapter, Question
from exambank.models.enums import LevelEnum, StatusShareEnum, level_name
from exambank.repository import Repository
from exambank.schemas.chapter import ChapterCreate, ChapterUpdate, ChapterStatusItem, ChapterEnableItem
from exambank.schemas.common import Caller
from exambank.schemas.question import ChapterQuestion
from exambank.services.access import ensure_owner, ensure_visible, is_owner
from exambank.services.lesson_service import lesson_service
from exambank.services.lookups import LessonLookup
from exambank.utils.shuffle import sample

logger = logging.getLogger(__name__)

chapters_repo = Repository(Chapter, "Chapter")
questions_repo = Repository(Question, "Question")


class ChapterService:
    """Service for chapters and the question pool they hold"""

    def __init__(self, lessons: LessonLookup):
        self.lessons = lessons

    def create(self, db: Session, data: ChapterCreate, caller: Caller) -> Chapter:
        lesson = self.lessons.get_owned(db, data.lesson_id, caller)
        self._ensure_unique_name(db, caller.id, data.name)

        chapter = Chapter(
            name=data.name,
            label=data.label,
            description=data.description,
            status=data.status.value,
            lesson_id=lesson.id,
            questions=[],
            owner_id=caller.id,
        )
        chapters_repo.insert(db, chapter)
        self.lessons.attach_chapter(db, lesson.id, chapter.id)

        db.commit()
        db.refresh(chapter)

        logger.info(f"Chapter created: {chapter.id} in lesson {lesson.id}")
        return chapter

    def get_chapter(self, db: Session, chapter_id: str) -> Chapter:
        return chapters_repo.get(db, chapter_id)

    def get_visible(self, db: Session, chapter_id: str, caller: Caller) -> Chapter:
        chapter = chapters_repo.get(db, chapter_id)
        ensure_visible(chapter, caller, "Chapter")
        return chapter

    def get_owned(self, db: Session, chapter_id: str, caller: Caller) -> Chapter:
        chapter = chapters_repo.get(db, chapter_id)
        if not is_owner(chapter, caller):
            raise RecordUnavailable(f"Chapter {chapter_id}")
        return chapter

    def list(
        self,
        db: Session,
        caller: Caller,
        lesson_id: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Chapter]:
        criteria = []
        if lesson_id:
            criteria.append(Chapter.lesson_id == lesson_id)
        if not caller.is_admin:
            criteria.append(or_(
                Chapter.owner_id == caller.id,
                Chapter.status == StatusShareEnum.PUBLIC.value,
                Chapter.enable.is_(True),
            ))
        return chapters_repo.find_many(
            db, *criteria, skip=skip, limit=limit, order_by=Chapter.created_at.desc()
        )

    def update(self, db: Session, chapter_id: str, data: ChapterUpdate, caller: Caller) -> Chapter:
        chapter = chapters_repo.get(db, chapter_id)
        ensure_owner(chapter, caller, "Chapter")

        if data.name is not None and data.name != chapter.name:
            self._ensure_unique_name(db, chapter.owner_id, data.name, exclude_id=chapter.id)

        patch = data.model_dump(exclude_unset=True, exclude={"lesson_id"})
        for field, value in patch.items():
            if value is not None:
                setattr(chapter, field, value)

        if data.lesson_id is not None and data.lesson_id != chapter.lesson_id:
            target = self.lessons.get_owned(db, data.lesson_id, caller)
            if chapter.lesson_id:
                self.lessons.detach_chapter(db, chapter.lesson_id, chapter.id)
            self.lessons.attach_chapter(db, target.id, chapter.id)
            logger.info(f"Chapter {chapter.id} moved from lesson {chapter.lesson_id} to {target.id}")
            chapter.lesson_id = target.id

        db.commit()
        db.refresh(chapter)
        return chapter

    def update_status(self, db: Session, items: List[ChapterStatusItem], caller: Caller) -> int:
        """Share status cascades to every question of the chapter"""
        chapters = [(chapters_repo.get(db, item.chapter_id), item.status.value) for item in items]
        for chapter, _ in chapters:
            ensure_owner(chapter, caller, "Chapter")

        for chapter, status in chapters:
            chapter.status = status
            questions_repo.update_many(db, [Question.chapter_id == chapter.id], {Question.status: status})
            chapter.questions = [{**question, "status": status} for question in chapter.questions or []]

        db.commit()
        logger.info(f"Status updated on {len(chapters)} chapter(s)")
        return len(chapters)

    def enable_many(self, db: Session, items: List[ChapterEnableItem], caller: Caller) -> int:
        chapters = [(chapters_repo.get(db, item.chapter_id), item.enable) for item in items]
        for chapter, _ in chapters:
            ensure_owner(chapter, caller, "Chapter")
        for chapter, enable in chapters:
            chapter.enable = enable

        db.commit()
        return len(chapters)

    def delete_many(self, db: Session, chapter_ids: List[str], caller: Caller) -> int:
        chapters = [chapters_repo.get(db, chapter_id) for chapter_id in dict.fromkeys(chapter_ids)]
        for chapter in chapters:
            ensure_owner(chapter, caller, "Chapter")
            if chapter.questions:
                raise RecordInUse(f"Chapter {chapter.id}", f"{len(chapter.questions)} question(s)")

        for chapter in chapters:
            if chapter.lesson_id:
                self.lessons.detach_chapter(db, chapter.lesson_id, chapter.id)
            db.delete(chapter)

        db.commit()
        logger.info(f"Deleted {len(chapters)} chapter(s)")
        return len(chapters)

    def sample(
        self,
        db: Session,
        chapter_id: str,
        level: LevelEnum,
        quantity: int,
        requester: Caller,
        rng: Optional[random.Random] = None,
    ) -> List[ChapterQuestion]:
        """
        Draw `quantity` distinct enabled questions of `level` from a chapter

        The chapter must be enabled, and public or owned by the requester.
        Returned questions are fresh copies; the stored chapter is untouched.
        """
        chapter = chapters_repo.get(db, chapter_id)
        if not chapter.enable or (
            chapter.status != StatusShareEnum.PUBLIC.value and not is_owner(chapter, requester)
        ):
            raise RecordUnavailable(f"Chapter {chapter_id}")

        level = LevelEnum(level)
        pool = [
            ChapterQuestion.model_validate(question)
            for question in chapter.questions or []
            if question.get("level") == level.value and question.get("enable", True)
        ]
        if len(pool) < quantity:
            raise InsufficientQuestions(chapter.id, level_name(level), len(pool), quantity)

        drawn = sample(pool, quantity, rng)
        logger.debug(f"Sampled {len(drawn)}/{len(pool)} '{level.value}' question(s) from chapter {chapter.id}")
        return drawn

    # Embedded copies (no commit: the question service owns the transaction)

    def embed_question(self, db: Session, chapter: Chapter, question: ChapterQuestion) -> None:
        """Insert or refresh the copy of `question` held by `chapter`"""
        document = question.model_dump(mode="json")
        questions = list(chapter.questions or [])
        for index, existing in enumerate(questions):
            if existing.get("id") == question.id:
                questions[index] = document
                break
        else:
            questions.append(document)
        chapter.questions = questions
        db.flush()

    def remove_question(self, db: Session, chapter_id: str, question_id: str) -> None:
        chapter = chapters_repo.find_by_id(db, chapter_id)
        if chapter is None:
            return
        chapter.questions = [q for q in chapter.questions or [] if q.get("id") != question_id]
        db.flush()

    def _ensure_unique_name(self, db: Session, owner_id: str, name: str, exclude_id: Optional[str] = None) -> None:
        criteria = [Chapter.owner_id == owner_id, func.lower(Chapter.name) == name.strip().lower()]
        if exclude_id:
            criteria.append(Chapter.id != exclude_id)
        if chapters_repo.exists(db, *criteria):
            raise RecordExisted(f"Chapter '{name}'")


# Global instance
chapter_service = ChapterService(lessons=lesson_service)
