"""
Question bank service
Keeps each question row and its copy embedded in the chapter in step
"""
import logging
import random
import uuid
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from exambank.exceptions import InvalidAnswerSet, RecordExisted, RecordInUse
from exambank.models import Chapter, Question, ExamQuestionRef
from exambank.models.enums import CategoryEnum, LevelEnum, StatusShareEnum
from exambank.repository import Repository
from exambank.schemas.answer import AnswerBase, EmbeddedAnswer
from exambank.schemas.common import Caller
from exambank.schemas.question import (
    ChapterQuestion, DistractorRequest, QuestionCreate, QuestionUpdate,
    QuestionsCreateRequest, QuestionStatusItem, QuestionEnableItem,
)
from exambank.services.access import ensure_owner, ensure_visible
from exambank.services.answer_service import AnswerService, answer_service
from exambank.services.chapter_service import chapter_service
from exambank.services.image_service import ImageService, image_service
from exambank.services.lookups import ChapterLookup
from exambank.utils.fill_in import generate_distractors, validate_fill_in
from exambank.utils.label import MAX_ANSWERS
from exambank.utils.shuffle import make_rng

logger = logging.getLogger(__name__)

questions_repo = Repository(Question, "Question")


def build_answer_set(
    content: str,
    category: CategoryEnum,
    answers: List[AnswerBase],
    quantity_wrong_answers: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> List[AnswerBase]:
    """
    Validate the answers of a question, generating fill-in wrong answers

    Exactly one answer is correct, except for multiple choice which needs at
    least one. Fill-in questions carry only their correct answer; the wrong ones
    are permutations of its blank values. A question holds at most MAX_ANSWERS
    answers so every one of them can be lettered on a paper.
    """
    correct = [answer for answer in answers if answer.is_correct]

    if category == CategoryEnum.FILL_IN:
        if len(correct) != 1 or len(answers) != 1:
            raise InvalidAnswerSet("A fill-in question takes exactly one answer, the correct one")
        validate_fill_in(content, correct[0].value)
        quantity = quantity_wrong_answers or 0
        if quantity + 1 > MAX_ANSWERS:
            raise InvalidAnswerSet(f"A question holds at most {MAX_ANSWERS - 1} wrong answers, got {quantity}")
        return correct + generate_distractors(correct[0], content, quantity, rng)

    if quantity_wrong_answers:
        raise InvalidAnswerSet("Wrong answers are only generated for fill-in questions")
    if len(answers) > MAX_ANSWERS:
        raise InvalidAnswerSet(f"A question holds at most {MAX_ANSWERS} answers, got {len(answers)}")
    if category == CategoryEnum.MULTIPLE_CHOICE:
        if not correct:
            raise InvalidAnswerSet("A multiple choice question needs at least one correct answer")
    elif len(correct) != 1:
        raise InvalidAnswerSet(f"Expected exactly one correct answer, got {len(correct)}")
    return list(answers)


def embed_answers(answers: List[AnswerBase], previous: Optional[List[dict]] = None) -> List[dict]:
    """Give answers ids, keeping the id of an unchanged previous answer"""
    known = {answer["value"]: answer["id"] for answer in previous or []}
    return [
        EmbeddedAnswer(id=known.pop(answer.value, None) or str(uuid.uuid4()), **answer.model_dump()).model_dump(mode="json")
        for answer in answers
    ]


def _normalized(content: str) -> str:
    return content.strip().lower()


class QuestionService:
    """Service for the question bank"""

    def __init__(self, chapters: ChapterLookup, answers: AnswerService, images: ImageService):
        self.chapters = chapters
        self.answers = answers
        self.images = images

    async def create_many(
        self,
        db: Session,
        data: QuestionsCreateRequest,
        caller: Caller,
        rng: Optional[random.Random] = None,
    ) -> List[Question]:
        """
        Create questions; every question is validated before anything is stored
        and a failed picture upload fails the whole request
        """
        prepared: List[Tuple[QuestionCreate, Chapter, List[AnswerBase]]] = []
        seen = set()
        for item in data.questions:
            chapter = self.chapters.get_owned(db, item.chapter_id, caller)
            key = _normalized(item.content)
            if key in seen:
                raise RecordExisted(f"Question '{item.content}'")
            seen.add(key)
            self._ensure_unique_content(db, caller.id, item.content)

            answers = list(item.answers) + self.answers.copy_for_question(db, item.answer_ids, caller)
            answers = build_answer_set(item.content, item.category, answers, item.quantity_wrong_answers, rng)
            prepared.append((item, chapter, answers))

        pictures: Dict[int, str] = {}
        for index, (item, _, _) in enumerate(prepared):
            if item.picture_base64:
                pictures[index] = await self.images.upload(
                    self.images.decode(item.picture_base64), item.picture_name
                )

        questions = []
        for index, (item, chapter, answers) in enumerate(prepared):
            question = Question(
                content=item.content,
                picture=pictures.get(index),
                remark=item.remark,
                level=item.level.value,
                category=item.category.value,
                answers=embed_answers(answers),
                chapter_id=chapter.id,
                owner_id=caller.id,
                enable=item.enable,
                status=item.status.value,
            )
            questions_repo.insert(db, question)
            self.chapters.embed_question(db, chapter, ChapterQuestion.model_validate(question))
            questions.append(question)

        db.commit()
        for question in questions:
            db.refresh(question)

        logger.info(f"Created {len(questions)} question(s) for {caller.id}")
        return questions

    def get(self, db: Session, question_id: str, caller: Caller) -> Question:
        question = questions_repo.get(db, question_id)
        ensure_visible(question, caller, "Question")
        return question

    def list(
        self,
        db: Session,
        caller: Caller,
        chapter_id: Optional[str] = None,
        level: Optional[LevelEnum] = None,
        category: Optional[CategoryEnum] = None,
        status: Optional[StatusShareEnum] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Question]:
        criteria = []
        if chapter_id:
            criteria.append(Question.chapter_id == chapter_id)
        if level:
            criteria.append(Question.level == level.value)
        if category:
            criteria.append(Question.category == category.value)
        if status:
            criteria.append(Question.status == status.value)
        if not caller.is_admin:
            criteria.append(or_(
                Question.owner_id == caller.id,
                Question.status == StatusShareEnum.PUBLIC.value,
                Question.enable.is_(True),
            ))
        return questions_repo.find_many(
            db, *criteria, skip=skip, limit=limit, order_by=Question.created_at.desc()
        )

    def update(
        self,
        db: Session,
        question_id: str,
        data: QuestionUpdate,
        caller: Caller,
        rng: Optional[random.Random] = None,
    ) -> Question:
        question = questions_repo.get(db, question_id)
        ensure_owner(question, caller, "Question")

        if data.content is not None and _normalized(data.content) != _normalized(question.content):
            self._ensure_unique_content(db, question.owner_id, data.content, exclude_id=question.id)

        content = data.content or question.content
        category = data.category or CategoryEnum(question.category)
        if (
            data.answers is not None
            or data.quantity_wrong_answers is not None
            or content != question.content
            or category.value != question.category
        ):
            question.answers = self._revise_answers(question, content, category, data, rng)

        for field in ("content", "remark", "enable"):
            value = getattr(data, field)
            if value is not None:
                setattr(question, field, value)
        for field in ("level", "category", "status"):
            value = getattr(data, field)
            if value is not None:
                setattr(question, field, value.value)

        if data.chapter_id is not None and data.chapter_id != question.chapter_id:
            target = self.chapters.get_owned(db, data.chapter_id, caller)
            self.chapters.remove_question(db, question.chapter_id, question.id)
            logger.info(f"Question {question.id} moved from chapter {question.chapter_id} to {target.id}")
            question.chapter_id = target.id

        db.flush()
        self._refresh_copy(db, question)
        db.commit()
        db.refresh(question)
        return question

    async def update_picture(
        self,
        db: Session,
        question_id: str,
        content: bytes,
        filename: Optional[str],
        caller: Caller,
    ) -> Question:
        question = questions_repo.get(db, question_id)
        ensure_owner(question, caller, "Question")

        question.picture = await self.images.upload(content, filename)
        db.flush()
        self._refresh_copy(db, question)
        db.commit()
        db.refresh(question)
        return question

    def update_status(self, db: Session, items: List[QuestionStatusItem], caller: Caller) -> int:
        return self._patch_many(db, [(item.question_id, "status", item.status.value) for item in items], caller)

    def enable_many(self, db: Session, items: List[QuestionEnableItem], caller: Caller) -> int:
        return self._patch_many(db, [(item.question_id, "enable", item.enable) for item in items], caller)

    def delete_many(self, db: Session, question_ids: List[str], caller: Caller) -> int:
        """Questions used by an exam cannot be deleted"""
        questions = [questions_repo.get(db, question_id) for question_id in dict.fromkeys(question_ids)]
        for question in questions:
            ensure_owner(question, caller, "Question")
            if db.query(ExamQuestionRef).filter(ExamQuestionRef.question_id == question.id).first():
                raise RecordInUse(f"Question {question.id}", "an exam")

        for question in questions:
            self.chapters.remove_question(db, question.chapter_id, question.id)
        deleted = questions_repo.delete_many(db, [question.id for question in questions])
        db.commit()

        logger.info(f"Deleted {deleted} question(s)")
        return deleted

    def preview_distractors(self, data: DistractorRequest) -> List[AnswerBase]:
        correct = AnswerBase(value=data.correct_value, score=0, is_correct=True)
        return generate_distractors(correct, data.content, data.quantity, make_rng(data.seed))

    def _revise_answers(
        self,
        question: Question,
        content: str,
        category: CategoryEnum,
        data: QuestionUpdate,
        rng: Optional[random.Random],
    ) -> List[dict]:
        previous = list(question.answers or [])
        quantity = data.quantity_wrong_answers
        if data.answers is not None:
            answers = list(data.answers)
        else:
            answers = [
                AnswerBase(**{k: v for k, v in answer.items() if k != "id"}) for answer in previous
            ]
            if category == CategoryEnum.FILL_IN:
                wrong = sum(1 for answer in answers if not answer.is_correct)
                answers = [answer for answer in answers if answer.is_correct]
                if quantity is None:
                    quantity = wrong
        return embed_answers(build_answer_set(content, category, answers, quantity, rng), previous)

    def _patch_many(self, db: Session, changes: List[Tuple[str, str, object]], caller: Caller) -> int:
        questions = [(questions_repo.get(db, question_id), field, value) for question_id, field, value in changes]
        for question, _, _ in questions:
            ensure_owner(question, caller, "Question")

        for question, field, value in questions:
            setattr(question, field, value)
        db.flush()
        for question, _, _ in questions:
            self._refresh_copy(db, question)

        db.commit()
        return len(questions)

    def _refresh_copy(self, db: Session, question: Question) -> None:
        chapter = self.chapters.get_chapter(db, question.chapter_id)
        self.chapters.embed_question(db, chapter, ChapterQuestion.model_validate(question))

    def _ensure_unique_content(
        self, db: Session, owner_id: str, content: str, exclude_id: Optional[str] = None
    ) -> None:
        criteria = [
            Question.owner_id == owner_id,
            func.lower(func.trim(Question.content)) == _normalized(content),
        ]
        if exclude_id:
            criteria.append(Question.id != exclude_id)
        if questions_repo.exists(db, *criteria):
            raise RecordExisted(f"Question '{content}'")


# Global instance
question_service = QuestionService(
    chapters=chapter_service,
    answers=answer_service,
    images=image_service,
)
