"""
Capability interfaces between services

Chapter, lesson, exam and class services reference each other. Each service
only sees the narrow capability it needs from its neighbours; the concrete
instances are wired together at the bottom of each service module.
"""
import random
from typing import List, Optional, Protocol

from sqlalchemy.orm import Session

from exambank.models import Chapter, Lesson, SchoolClass
from exambank.models.enums import LevelEnum
from exambank.schemas.common import Caller
from exambank.schemas.question import ChapterQuestion


class ClassFanout(Protocol):
    """Keeps the lesson entries embedded in classes in step with lessons"""

    def find_by_lesson(self, db: Session, lesson_id: str) -> List[SchoolClass]: ...

    def attach_lesson(self, db: Session, class_id: str, lesson: Lesson, caller: Caller) -> None: ...

    def detach_lesson(self, db: Session, lesson_id: str, class_ids: Optional[List[str]] = None) -> int: ...

    def rename_lesson(self, db: Session, lesson_id: str, name: str) -> int: ...

    def add_lesson_exams(self, db: Session, lesson_id: str, exam_ids: List[str]) -> int: ...

    def remove_lesson_exams(self, db: Session, lesson_id: str, exam_ids: List[str]) -> int: ...


class LessonLookup(Protocol):
    """What chapters and exams need to know about lessons"""

    def get_lesson(self, db: Session, lesson_id: str) -> Lesson: ...

    def get_owned(self, db: Session, lesson_id: str, caller: Caller, allow_admin: bool = True) -> Lesson: ...

    def get_chapter_ids(self, db: Session, lesson_id: str) -> List[str]: ...

    def attach_chapter(self, db: Session, lesson_id: str, chapter_id: str) -> None: ...

    def detach_chapter(self, db: Session, lesson_id: str, chapter_id: str) -> None: ...

    def append_exams(self, db: Session, lesson: Lesson, exam_ids: List[str]) -> None: ...

    def remove_exams(self, db: Session, lesson_id: str, exam_ids: List[str]) -> None: ...


class ChapterLookup(Protocol):
    """Chapter access used by the question bank and exam generator"""

    def get_chapter(self, db: Session, chapter_id: str) -> Chapter: ...

    def get_visible(self, db: Session, chapter_id: str, caller: Caller) -> Chapter: ...

    def get_owned(self, db: Session, chapter_id: str, caller: Caller) -> Chapter: ...

    def embed_question(self, db: Session, chapter: Chapter, question: ChapterQuestion) -> None: ...

    def remove_question(self, db: Session, chapter_id: str, question_id: str) -> None: ...

    def sample(
        self,
        db: Session,
        chapter_id: str,
        level: LevelEnum,
        quantity: int,
        requester: Caller,
        rng: Optional[random.Random] = None,
    ) -> List[ChapterQuestion]: ...
