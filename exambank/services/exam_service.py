"""
Exam generation service

Builds exam papers from a question pool: the pool is either hand-picked
(create) or drawn from chapters according to weighted scales (generate). Every
paper reshuffles the questions and their answers, relabels them and stores a
point-in-time snapshot.
"""
import logging
import random
import uuid
from typing import Dict, List, Optional, Sequence, Set, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from exambank.config import settings
from exambank.exceptions import (
    ConcurrentModification, ExamSizeExceeded, InvalidScalePercent,
    RecordExisted, RecordNotFound, RecordUnavailable,
)
from exambank.models import Exam, ExamQuestionRef
from exambank.models.enums import AnswerLabelEnum, LevelEnum, QuestionLabelEnum, StatusShareEnum
from exambank.repository import Repository
from exambank.schemas.common import Caller
from exambank.schemas.exam import (
    ExamBase, ExamCreate, ExamGenerate, ExamResponse, ExamUpdate, ExamEnableItem,
    ScaleBreakdown, ScaleIn, SnapshotAnswer, SnapshotQuestion,
)
from exambank.schemas.question import ChapterQuestion
from exambank.services.access import ensure_owner, ensure_visible
from exambank.services.chapter_service import chapter_service
from exambank.services.class_service import class_service
from exambank.services.lesson_service import lesson_service
from exambank.services.lookups import ChapterLookup, ClassFanout, LessonLookup
from exambank.utils.cache import CacheService, cache_service
from exambank.utils.label import answer_label, question_label
from exambank.utils.shuffle import make_rng, random_chars, random_digits, shuffle

logger = logging.getLogger(__name__)

exams_repo = Repository(Exam, "Exam")

# (chapter_id, question) pairs making up a paper
Pool = List[Tuple[str, ChapterQuestion]]


def ensure_scale_total(scales: Sequence[ScaleIn]) -> None:
    total = sum(scale.percent for scale in scales)
    if total != 100:
        raise InvalidScalePercent(f"Scale percentages add up to {total}, expected 100")


def merge_scales(scales: Sequence[ScaleIn]) -> List[ScaleIn]:
    """Fold scales targeting the same (chapter, level) bucket into one"""
    merged: Dict[Tuple[str, str], int] = {}
    for scale in scales:
        key = (scale.chapter_id, scale.level.value)
        merged[key] = merged.get(key, 0) + scale.percent
    return [
        ScaleIn.model_construct(chapter_id=chapter_id, level=LevelEnum(level), percent=percent)
        for (chapter_id, level), percent in merged.items()
    ]


def question_quantity(percent: int, total_questions: int) -> int:
    """percent of total_questions, which must come out as a whole number"""
    share = percent * total_questions
    if share % 100:
        raise InvalidScalePercent(
            f"{percent}% of {total_questions} question(s) is not a whole number of questions"
        )
    return share // 100


def summarize_pool(pool: Pool, max_score: float) -> List[ScaleBreakdown]:
    """Per (chapter, level) share of a pool, percentages rounded to 2 decimals"""
    counts: Dict[Tuple[str, str], int] = {}
    for chapter_id, question in pool:
        key = (chapter_id, question.level.value)
        counts[key] = counts.get(key, 0) + 1

    total = len(pool)
    return [
        ScaleBreakdown(
            chapter_id=chapter_id,
            level=level,
            percent=round(count * 100 / total, 2),
            question_count=count,
            score=round(max_score * count / total, 2),
        )
        for (chapter_id, level), count in counts.items()
    ]


def build_paper(
    pool: Pool,
    question_scheme: QuestionLabelEnum,
    answer_scheme: AnswerLabelEnum,
    rng: Optional[random.Random] = None,
) -> List[SnapshotQuestion]:
    """Shuffle questions and answers, label them and snapshot the result"""
    paper = []
    for position, (chapter_id, question) in enumerate(shuffle(pool, rng)):
        answers = tuple(
            SnapshotAnswer(
                answer_id=answer.id,
                label=answer_label(answer_scheme, index),
                value=answer.value,
                score=answer.score,
                is_correct=answer.is_correct,
                remark=answer.remark,
            )
            for index, answer in enumerate(shuffle(question.answers, rng))
        )
        paper.append(SnapshotQuestion(
            question_id=question.id,
            chapter_id=chapter_id,
            label=question_label(question_scheme, position),
            content=question.content,
            picture=question.picture,
            level=question.level,
            category=question.category,
            answers=answers,
        ))
    return paper


def relabel_paper(
    questions: Sequence[SnapshotQuestion],
    question_scheme: QuestionLabelEnum,
    answer_scheme: AnswerLabelEnum,
) -> List[SnapshotQuestion]:
    """New labels in the current order; content is left as it is"""
    return [
        question.model_copy(update={
            "label": question_label(question_scheme, position),
            "answers": tuple(
                answer.model_copy(update={"label": answer_label(answer_scheme, index)})
                for index, answer in enumerate(question.answers)
            ),
        })
        for position, question in enumerate(questions)
    ]


class ExamService:
    """Service for generating and managing exam papers"""

    def __init__(
        self,
        lessons: LessonLookup,
        chapters: ChapterLookup,
        classes: ClassFanout,
        cache: CacheService,
    ):
        self.lessons = lessons
        self.chapters = chapters
        self.classes = classes
        self.cache = cache

    def create(
        self,
        db: Session,
        request: ExamCreate,
        caller: Caller,
        rng: Optional[random.Random] = None,
    ) -> List[Exam]:
        """Papers from hand-picked questions"""
        picked = sum(len(info.question_ids) for info in request.question_infos)
        self._check_size(request.number_exams, picked)

        lesson = self.lessons.get_owned(db, request.lesson_id, caller)
        lesson_chapters = set(lesson.chapter_ids or [])

        pool: Pool = []
        seen: Set[str] = set()
        for info in request.question_infos:
            chapter = self.chapters.get_visible(db, info.chapter_id, caller)
            if chapter.id not in lesson_chapters:
                raise RecordNotFound(f"Chapter {chapter.id} in lesson {lesson.id}")

            embedded = {question["id"]: question for question in chapter.questions or []}
            for question_id in info.question_ids:
                if question_id not in embedded:
                    raise RecordNotFound(f"Question {question_id} in chapter {chapter.id}")
                if not embedded[question_id].get("enable", True):
                    raise RecordUnavailable(f"Question {question_id}")
                if question_id in seen:
                    continue
                seen.add(question_id)
                pool.append((chapter.id, ChapterQuestion.model_validate(embedded[question_id])))

        rng = rng or make_rng(request.seed)
        breakdown = summarize_pool(pool, request.max_score)
        exams = self._produce(db, lesson, pool, breakdown, request, caller, rng)

        logger.info(f"Created {len(exams)} exam(s) with {len(pool)} question(s) in lesson {lesson.id}")
        return exams

    def generate(
        self,
        db: Session,
        request: ExamGenerate,
        caller: Caller,
        rng: Optional[random.Random] = None,
    ) -> List[Exam]:
        """
        Papers drawn at random according to scales

        Each scale contributes percent * total_questions / 100 questions of its
        level from its chapter. The pool is drawn once and shared by all papers
        of the request; only question order, answer order and labels differ.
        """
        self._check_size(request.number_exams, request.total_questions)

        lesson = self.lessons.get_owned(db, request.lesson_id, caller, allow_admin=False)
        ensure_scale_total(request.scales)
        scales = merge_scales(request.scales)

        lesson_chapters = set(lesson.chapter_ids or [])
        quantities = []
        for scale in scales:
            if scale.chapter_id not in lesson_chapters:
                raise RecordNotFound(f"Chapter {scale.chapter_id} in lesson {lesson.id}")
            quantities.append(question_quantity(scale.percent, request.total_questions))

        rng = rng or make_rng(request.seed)
        pool: Pool = []
        breakdown: List[ScaleBreakdown] = []
        for scale, quantity in zip(scales, quantities):
            drawn = self.chapters.sample(db, scale.chapter_id, scale.level, quantity, caller, rng)
            pool.extend((scale.chapter_id, question) for question in drawn)
            breakdown.append(ScaleBreakdown(
                chapter_id=scale.chapter_id,
                level=scale.level,
                percent=float(scale.percent),
                question_count=quantity,
                score=round(request.max_score * quantity / request.total_questions, 2),
            ))

        exams = self._produce(db, lesson, pool, breakdown, request, caller, rng)

        logger.info(
            f"Generated {len(exams)} exam(s) of {len(pool)} question(s) "
            f"from {len(scales)} scale(s) in lesson {lesson.id}"
        )
        return exams

    def get(self, db: Session, exam_id: str, caller: Caller) -> ExamResponse:
        cached = self.cache.get_exam(exam_id)
        if cached:
            exam = ExamResponse(**cached)
        else:
            exam = ExamResponse.from_model(exams_repo.get(db, exam_id))
            self.cache.set_exam(exam_id, exam.model_dump(mode="json"))

        ensure_visible(exam, caller, "Exam")
        return exam

    def list_by_lesson(
        self,
        db: Session,
        lesson_id: str,
        caller: Caller,
        status: Optional[StatusShareEnum] = None,
        enable: Optional[bool] = None,
        sku: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Exam]:
        lesson = self.lessons.get_lesson(db, lesson_id)
        ensure_visible(lesson, caller, "Lesson")

        criteria = [Exam.lesson_id == lesson.id]
        if status is not None:
            criteria.append(Exam.status == status.value)
        if enable is not None:
            criteria.append(Exam.enable.is_(enable))
        if sku:
            criteria.append(Exam.sku.like(f"{sku.strip().upper()}%"))
        if not caller.is_admin:
            criteria.append(or_(
                Exam.owner_id == caller.id,
                Exam.status == StatusShareEnum.PUBLIC.value,
                Exam.enable.is_(True),
            ))
        return exams_repo.find_many(db, *criteria, skip=skip, limit=limit, order_by=Exam.sku)

    def update(self, db: Session, exam_id: str, data: ExamUpdate, caller: Caller) -> Exam:
        """Metadata, labels and lesson only; the question snapshot keeps its content"""
        exam = exams_repo.get(db, exam_id)
        ensure_owner(exam, caller, "Exam")

        for field in ("label", "time", "max_score", "enable"):
            value = getattr(data, field)
            if value is not None:
                setattr(exam, field, value)
        if data.status is not None:
            exam.status = data.status.value

        if data.question_label is not None or data.answer_label is not None:
            question_scheme = data.question_label or QuestionLabelEnum(exam.question_label)
            answer_scheme = data.answer_label or AnswerLabelEnum(exam.answer_label)
            questions = [SnapshotQuestion(**question) for question in exam.questions or []]
            exam.questions = [
                question.model_dump(mode="json")
                for question in relabel_paper(questions, question_scheme, answer_scheme)
            ]
            exam.question_label = question_scheme.value
            exam.answer_label = answer_scheme.value

        if data.max_score is not None:
            exam.scales = self._rescore(exam.scales or [], data.max_score)

        try:
            if data.lesson_id is not None and data.lesson_id != exam.lesson_id:
                self._move(db, exam, data.lesson_id, caller)
            db.commit()
        except StaleDataError:
            db.rollback()
            raise ConcurrentModification(f"Lesson of exam {exam_id} was modified concurrently, please retry")

        self.cache.invalidate_exams([exam_id])
        db.refresh(exam)

        logger.info(f"Exam updated: {exam_id}")
        return exam

    def enable_many(self, db: Session, items: List[ExamEnableItem], caller: Caller) -> int:
        exams = [(exams_repo.get(db, item.exam_id), item.enable) for item in items]
        for exam, _ in exams:
            ensure_owner(exam, caller, "Exam")
        for exam, enable in exams:
            exam.enable = enable

        db.commit()
        self.cache.invalidate_exams([exam.id for exam, _ in exams])
        return len(exams)

    def delete_many(self, db: Session, exam_ids: List[str], caller: Caller) -> int:
        exams = [exams_repo.get(db, exam_id) for exam_id in dict.fromkeys(exam_ids)]
        for exam in exams:
            ensure_owner(exam, caller, "Exam")

        by_lesson: Dict[str, List[str]] = {}
        for exam in exams:
            by_lesson.setdefault(exam.lesson_id, []).append(exam.id)

        ids = [exam.id for exam in exams]
        try:
            for lesson_id, lesson_exam_ids in by_lesson.items():
                self.lessons.remove_exams(db, lesson_id, lesson_exam_ids)
                self.classes.remove_lesson_exams(db, lesson_id, lesson_exam_ids)
            db.query(ExamQuestionRef).filter(
                ExamQuestionRef.exam_id.in_(ids)
            ).delete(synchronize_session="fetch")
            deleted = exams_repo.delete_many(db, ids)
            db.commit()
        except StaleDataError:
            db.rollback()
            raise ConcurrentModification("Lesson was modified concurrently, please retry")

        self.cache.invalidate_exams(ids)
        logger.info(f"Deleted {deleted} exam(s)")
        return deleted

    def _produce(
        self,
        db: Session,
        lesson,
        pool: Pool,
        breakdown: List[ScaleBreakdown],
        request: ExamBase,
        caller: Caller,
        rng: random.Random,
    ) -> List[Exam]:
        taken = {exam.sku for exam in exams_repo.find_many(db, Exam.lesson_id == lesson.id)}
        base_sku = request.sku or random_chars(3, rng)
        scales = [scale.model_dump(mode="json") for scale in breakdown]

        drafts = []
        for _ in range(request.number_exams):
            paper = build_paper(pool, request.question_label, request.answer_label, rng)
            drafts.append(dict(
                id=str(uuid.uuid4()),
                label=request.label,
                time=request.time,
                sku=self._next_sku(base_sku, taken, rng),
                max_score=request.max_score,
                scales=scales,
                questions=[question.model_dump(mode="json") for question in paper],
                status=request.status.value,
                enable=request.enable,
                question_label=request.question_label.value,
                answer_label=request.answer_label.value,
                lesson_id=lesson.id,
                lesson_name=lesson.name,
                owner_id=caller.id,
            ))

        return self._persist(db, lesson.id, drafts)

    def _persist(self, db: Session, lesson_id: str, drafts: List[dict]) -> List[Exam]:
        """
        Store the papers and append them to the lesson in one transaction

        The lesson row is version checked; when another request changed it in
        the meantime the whole write is replayed against the fresh lesson.
        """
        attempts = settings.LESSON_WRITE_RETRIES
        for attempt in range(1, attempts + 1):
            exams = [Exam(**draft) for draft in drafts]
            exam_ids = [exam.id for exam in exams]
            try:
                lesson = self.lessons.get_lesson(db, lesson_id)
                db.add_all(exams)
                db.flush()
                db.add_all(
                    ExamQuestionRef(exam_id=exam.id, question_id=question_id)
                    for exam in exams
                    for question_id in dict.fromkeys(q["question_id"] for q in exam.questions)
                )
                self.lessons.append_exams(db, lesson, exam_ids)
                self.classes.add_lesson_exams(db, lesson_id, exam_ids)
                db.commit()
            except StaleDataError:
                db.rollback()
                logger.warning(f"Lesson {lesson_id} changed while storing exams (attempt {attempt}/{attempts})")
                continue
            except Exception:
                db.rollback()
                raise

            for exam in exams:
                db.refresh(exam)
            return exams

        raise ConcurrentModification(f"Lesson {lesson_id} kept changing, exams were not stored")

    def _next_sku(self, base: str, taken: Set[str], rng: random.Random) -> str:
        length = settings.SKU_SUFFIX_LENGTH
        for _ in range(10 * length):
            candidate = f"{base}{random_digits(length, rng)}"
            if candidate not in taken:
                taken.add(candidate)
                return candidate

        for number in range(10 ** length):
            candidate = f"{base}{number:0{length}d}"
            if candidate not in taken:
                taken.add(candidate)
                return candidate
        raise RecordExisted(f"Every SKU with base {base}")

    def _move(self, db: Session, exam: Exam, lesson_id: str, caller: Caller) -> None:
        target = self.lessons.get_owned(db, lesson_id, caller)
        self.lessons.remove_exams(db, exam.lesson_id, [exam.id])
        self.classes.remove_lesson_exams(db, exam.lesson_id, [exam.id])
        self.lessons.append_exams(db, target, [exam.id])
        self.classes.add_lesson_exams(db, target.id, [exam.id])

        logger.info(f"Exam {exam.id} moved from lesson {exam.lesson_id} to {target.id}")
        exam.lesson_id = target.id
        exam.lesson_name = target.name

    @staticmethod
    def _rescore(scales: List[dict], max_score: float) -> List[dict]:
        total = sum(scale["question_count"] for scale in scales)
        if not total:
            return scales
        return [
            {**scale, "score": round(max_score * scale["question_count"] / total, 2)}
            for scale in scales
        ]

    @staticmethod
    def _check_size(number_exams: int, question_count: int) -> None:
        if number_exams > settings.MAX_EXAMS_PER_REQUEST:
            raise ExamSizeExceeded(
                f"At most {settings.MAX_EXAMS_PER_REQUEST} exams per request, got {number_exams}"
            )
        if question_count > settings.MAX_QUESTIONS_PER_EXAM:
            raise ExamSizeExceeded(
                f"At most {settings.MAX_QUESTIONS_PER_EXAM} questions per exam, got {question_count}"
            )


# Global instance
exam_service = ExamService(
    lessons=lesson_service,
    chapters=chapter_service,
    classes=class_service,
    cache=cache_service,
)
