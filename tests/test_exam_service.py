import random

import pytest
from sqlalchemy import text

from exambank.config import settings
from exambank.exceptions import (
    ConcurrentModification, ExamSizeExceeded, InsufficientQuestions, InvalidScalePercent, NoPermission,
    RecordNotFound,
)
from exambank.models import Exam, ExamQuestionRef
from exambank.models.enums import AnswerLabelEnum, LevelEnum, QuestionLabelEnum
from exambank.schemas.exam import ExamCreate, ExamGenerate, ExamUpdate, QuestionInfo, ScaleIn
from exambank.schemas.question import QuestionUpdate
from exambank.services.exam_service import exam_service, merge_scales, question_quantity
from exambank.services.lesson_service import lesson_service
from exambank.services.question_service import question_service


def generate_request(bank, total_questions=10, number_exams=2, scales=None, **kwargs):
    scales = scales or [
        ScaleIn(chapter_id=bank["c1"].id, level=LevelEnum.REMEMBERING, percent=70),
        ScaleIn(chapter_id=bank["c2"].id, level=LevelEnum.CREATING, percent=30),
    ]
    return ExamGenerate(
        label="Midterm",
        time=45,
        lesson_id=bank["lesson"].id,
        scales=scales,
        total_questions=total_questions,
        number_exams=number_exams,
        **kwargs,
    )


def test_generate_end_to_end(db, owner, bank):
    exams = exam_service.generate(db, generate_request(bank, sku="alg"), owner, random.Random(7))

    assert len(exams) == 2
    easy_ids = {question.id for question in bank["easy"]}
    hard_ids = {question.id for question in bank["hard"]}
    for exam in exams:
        assert len(exam.questions) == 10
        drawn = [question["question_id"] for question in exam.questions]
        assert len(set(drawn)) == 10
        assert len([qid for qid in drawn if qid in easy_ids]) == 7
        assert len([qid for qid in drawn if qid in hard_ids]) == 3
        assert exam.lesson_id == bank["lesson"].id
        assert exam.lesson_name == "Algebra"
        assert exam.sku.startswith("ALG") and len(exam.sku) == 6

    # One pool per request: papers differ only by order and labels
    assert {q["question_id"] for q in exams[0].questions} == {q["question_id"] for q in exams[1].questions}
    assert exams[0].sku != exams[1].sku

    lesson = lesson_service.get_lesson(db, bank["lesson"].id)
    assert lesson.exam_ids == [exam.id for exam in exams]


def test_generate_labels_and_breakdown(db, owner, bank):
    request = generate_request(
        bank,
        number_exams=1,
        question_label=QuestionLabelEnum.END_BRACKET,
        answer_label=AnswerLabelEnum.LOW_DOT,
        max_score=10,
    )
    exam = exam_service.generate(db, request, owner, random.Random(3))[0]

    assert [q["label"] for q in exam.questions] == [f"Câu {i})" for i in range(1, 11)]
    for question in exam.questions:
        assert [a["label"] for a in question["answers"]] == ["a.", "b.", "c.", "d."]
        assert sum(1 for a in question["answers"] if a["is_correct"]) == 1

    breakdown = {(s["chapter_id"], s["level"]): s for s in exam.scales}
    easy = breakdown[(bank["c1"].id, "remembering")]
    hard = breakdown[(bank["c2"].id, "creating")]
    assert (easy["question_count"], easy["score"]) == (7, 7.0)
    assert (hard["question_count"], hard["score"]) == (3, 3.0)


def test_seed_makes_generation_reproducible(db, owner, bank):
    first = exam_service.generate(db, generate_request(bank, number_exams=1, seed=99, sku="SEED"), owner)[0]
    second = exam_service.generate(db, generate_request(bank, number_exams=1, seed=99, sku="SEED"), owner)[0]

    assert [q["question_id"] for q in first.questions] == [q["question_id"] for q in second.questions]
    assert first.sku != second.sku


def test_scale_sum_checked_before_sampling(db, owner, bank, monkeypatch):
    calls = []
    monkeypatch.setattr(exam_service.chapters, "sample", lambda *args, **kwargs: calls.append(args))
    scales = [
        ScaleIn(chapter_id=bank["c1"].id, level=LevelEnum.REMEMBERING, percent=60),
        ScaleIn(chapter_id=bank["c2"].id, level=LevelEnum.CREATING, percent=30),
    ]

    with pytest.raises(InvalidScalePercent):
        exam_service.generate(db, generate_request(bank, scales=scales), owner)
    assert calls == []


def test_insufficient_questions_persists_nothing(db, owner, bank):
    with pytest.raises(InsufficientQuestions) as error:
        exam_service.generate(db, generate_request(bank, total_questions=100), owner)

    assert error.value.chapter_id == bank["c1"].id
    assert (error.value.available, error.value.required) == (10, 70)
    assert db.query(Exam).count() == 0
    assert lesson_service.get_lesson(db, bank["lesson"].id).exam_ids == []


def test_generate_requires_lesson_owner(db, stranger, admin, bank):
    for caller in (stranger, admin):
        with pytest.raises(NoPermission):
            exam_service.generate(db, generate_request(bank), caller)

    assert db.query(Exam).count() == 0
    assert lesson_service.get_lesson(db, bank["lesson"].id).exam_ids == []


def test_fractional_quantity_rejected(db, owner, bank):
    with pytest.raises(InvalidScalePercent):
        exam_service.generate(db, generate_request(bank, total_questions=5), owner)
    assert question_quantity(70, 10) == 7


def test_duplicate_scales_are_merged():
    merged = merge_scales([
        ScaleIn(chapter_id="c", level=LevelEnum.APPLYING, percent=40),
        ScaleIn(chapter_id="c", level=LevelEnum.APPLYING, percent=60),
    ])
    assert len(merged) == 1
    assert merged[0].percent == 100


def test_scale_chapter_must_belong_to_lesson(db, owner, bank):
    scales = [ScaleIn(chapter_id="unknown", level=LevelEnum.REMEMBERING, percent=100)]
    with pytest.raises(RecordNotFound):
        exam_service.generate(db, generate_request(bank, scales=scales), owner)


def test_size_guard(db, owner, bank):
    with pytest.raises(ExamSizeExceeded):
        exam_service.generate(db, generate_request(bank, number_exams=1000), owner)


def test_exam_snapshot_is_immutable(db, owner, bank):
    exam = exam_service.generate(db, generate_request(bank, number_exams=1), owner, random.Random(5))[0]
    source = exam.questions[0]

    question_service.update(db, source["question_id"], QuestionUpdate(content="Rewritten question"), owner)

    db.expire_all()
    stored = db.get(Exam, exam.id)
    assert stored.questions[0]["content"] == source["content"]
    assert stored.questions[0]["content"] != "Rewritten question"


def test_create_from_picked_questions(db, owner, bank):
    picked = [question.id for question in bank["easy"][:3]]
    request = ExamCreate(
        label="Quiz",
        time=15,
        lesson_id=bank["lesson"].id,
        question_infos=[
            QuestionInfo(chapter_id=bank["c1"].id, question_ids=picked),
            QuestionInfo(chapter_id=bank["c2"].id, question_ids=[bank["hard"][0].id]),
        ],
        number_exams=3,
    )
    exams = exam_service.create(db, request, owner, random.Random(8))

    assert len(exams) == 3
    assert len({exam.sku for exam in exams}) == 3
    for exam in exams:
        assert {q["question_id"] for q in exam.questions} == set(picked) | {bank["hard"][0].id}
    breakdown = {s["chapter_id"]: s for s in exams[0].scales}
    assert breakdown[bank["c1"].id]["percent"] == 75.0
    assert breakdown[bank["c2"].id]["percent"] == 25.0

    refs = db.query(ExamQuestionRef).filter(ExamQuestionRef.exam_id == exams[0].id).count()
    assert refs == 4


def test_create_rejects_question_from_other_chapter(db, owner, bank):
    request = ExamCreate(
        label="Quiz",
        time=15,
        lesson_id=bank["lesson"].id,
        question_infos=[QuestionInfo(chapter_id=bank["c1"].id, question_ids=[bank["hard"][0].id])],
    )
    with pytest.raises(RecordNotFound) as error:
        exam_service.create(db, request, owner)
    assert bank["hard"][0].id in error.value.message


def test_relabel_keeps_content(db, owner, bank):
    exam = exam_service.generate(db, generate_request(bank, number_exams=1), owner)[0]
    contents = [q["content"] for q in exam.questions]

    updated = exam_service.update(
        db, exam.id,
        ExamUpdate(question_label=QuestionLabelEnum.END_COLON, answer_label=AnswerLabelEnum.UP_BRACKET),
        owner,
    )

    assert [q["content"] for q in updated.questions] == contents
    assert updated.questions[0]["label"] == "Câu 1:"
    assert updated.questions[0]["answers"][0]["label"] == "A)"


def test_delete_exams_updates_lesson(db, owner, bank):
    exams = exam_service.generate(db, generate_request(bank), owner)

    assert exam_service.delete_many(db, [exams[0].id], owner) == 1

    lesson = lesson_service.get_lesson(db, bank["lesson"].id)
    assert lesson.exam_ids == [exams[1].id]
    assert db.query(ExamQuestionRef).filter(ExamQuestionRef.exam_id == exams[0].id).count() == 0


def bump_lesson_version(monkeypatch, times):
    """Simulate another writer changing the lesson right before exams are appended"""
    original = lesson_service.append_exams
    calls = []

    def append_exams(db, lesson, exam_ids):
        calls.append(list(exam_ids))
        if len(calls) <= times:
            db.execute(text("UPDATE lessons SET version = version + 1 WHERE id = :id"), {"id": lesson.id})
        return original(db, lesson, exam_ids)

    monkeypatch.setattr(lesson_service, "append_exams", append_exams)
    return calls


def test_stale_lesson_write_is_retried(db, owner, bank, monkeypatch):
    calls = bump_lesson_version(monkeypatch, times=1)

    exams = exam_service.generate(db, generate_request(bank, number_exams=1), owner, random.Random(5))

    assert len(calls) == 2
    lesson = lesson_service.get_lesson(db, bank["lesson"].id)
    assert lesson.exam_ids == [exams[0].id]
    assert db.query(Exam).count() == 1
    assert db.query(ExamQuestionRef).count() == 10


def test_lesson_that_keeps_changing_raises_concurrent_modification(db, owner, bank, monkeypatch):
    calls = bump_lesson_version(monkeypatch, times=100)

    with pytest.raises(ConcurrentModification):
        exam_service.generate(db, generate_request(bank, number_exams=1), owner, random.Random(5))

    assert len(calls) == settings.LESSON_WRITE_RETRIES
    assert db.query(Exam).count() == 0
    assert db.query(ExamQuestionRef).count() == 0
    assert lesson_service.get_lesson(db, bank["lesson"].id).exam_ids == []
