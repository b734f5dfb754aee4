import asyncio
import base64
import os
import random

import pytest
from pydantic import ValidationError

from exambank.config import settings
from exambank.exceptions import (
    InvalidAnswerSet, InvalidFillInFormat, NoPermission, RecordExisted, RecordUnavailable, UploadFailed,
)
from exambank.models.enums import CategoryEnum, LevelEnum
from exambank.schemas.answer import AnswerBase, AnswersCreateRequest
from exambank.schemas.question import DistractorRequest, QuestionCreate, QuestionsCreateRequest, QuestionUpdate
from exambank.services.answer_service import answer_service
from exambank.services.question_service import build_answer_set, question_service
from exambank.utils.label import MAX_ANSWERS


def create(db, caller, *questions):
    return asyncio.run(question_service.create_many(
        db, QuestionsCreateRequest(questions=list(questions)), caller, random.Random(0)
    ))


def fill_in(chapter_id, content="[__] plus [__] makes [__]", value="one[__]two[__]three", wrong=3):
    return QuestionCreate(
        content=content,
        chapter_id=chapter_id,
        level=LevelEnum.APPLYING,
        category=CategoryEnum.FILL_IN,
        answers=[AnswerBase(value=value, score=1, is_correct=True)],
        quantity_wrong_answers=wrong,
    )


def test_single_choice_needs_exactly_one_correct():
    answers = [AnswerBase(value="a", score=1, is_correct=True), AnswerBase(value="b", score=1, is_correct=True)]
    with pytest.raises(InvalidAnswerSet):
        build_answer_set("Pick one", CategoryEnum.SINGLE_CHOICE, answers)
    assert build_answer_set("Pick any", CategoryEnum.MULTIPLE_CHOICE, answers) == answers


def test_multiple_choice_needs_a_correct_answer():
    with pytest.raises(InvalidAnswerSet):
        build_answer_set("Pick any", CategoryEnum.MULTIPLE_CHOICE, [AnswerBase(value="a")])


def test_fill_in_question_gets_generated_wrong_answers(db, owner, bank):
    question = create(db, owner, fill_in(bank["c1"].id))[0]

    assert len(question.answers) == 4
    correct = [a for a in question.answers if a["is_correct"]]
    wrong = [a["value"] for a in question.answers if not a["is_correct"]]
    assert [a["value"] for a in correct] == ["one[__]two[__]three"]
    assert len(set(wrong)) == 3
    assert "one[__]two[__]three" not in wrong


def test_fill_in_blank_mismatch(db, owner, bank):
    with pytest.raises(InvalidFillInFormat):
        create(db, owner, fill_in(bank["c1"].id, value="one[__]two"))


def test_fill_in_takes_only_the_correct_answer(db, owner, bank):
    item = fill_in(bank["c1"].id)
    item.answers.append(AnswerBase(value="two[__]one[__]three"))
    with pytest.raises(InvalidAnswerSet):
        create(db, owner, item)


def test_duplicate_content_rejected(db, owner, bank):
    item = QuestionCreate(
        content="easy question 0 ",
        chapter_id=bank["c1"].id,
        level=LevelEnum.REMEMBERING,
        category=CategoryEnum.TRUE_FALSE,
        answers=[AnswerBase(value="True", score=1, is_correct=True), AnswerBase(value="False")],
    )
    with pytest.raises(RecordExisted):
        create(db, owner, item)


def test_question_needs_owned_chapter(db, stranger, bank):
    with pytest.raises(RecordUnavailable):
        create(db, stranger, fill_in(bank["c1"].id))


def test_catalog_answers_are_copied(db, owner, bank):
    catalog = answer_service.create_many(db, AnswersCreateRequest(answers=[
        AnswerBase(value="Hanoi", score=2, is_correct=True),
        AnswerBase(value="Hue"),
    ]), owner)
    item = QuestionCreate(
        content="Capital of Vietnam?",
        chapter_id=bank["c1"].id,
        level=LevelEnum.REMEMBERING,
        category=CategoryEnum.SINGLE_CHOICE,
        answers=[AnswerBase(value="Da Nang")],
        answer_ids=[answer.id for answer in catalog],
    )
    question = create(db, owner, item)[0]

    assert [a["value"] for a in question.answers] == ["Da Nang", "Hanoi", "Hue"]
    assert {a["id"] for a in question.answers}.isdisjoint({answer.id for answer in catalog})


def test_picture_is_uploaded(db, owner, bank):
    item = fill_in(bank["c2"].id, content="[__] and [__]", value="x[__]y", wrong=1)
    item.level = LevelEnum.CREATING
    item.picture_base64 = base64.b64encode(b"\x89PNG fake image").decode()
    item.picture_name = "graph one.png"

    question = create(db, owner, item)[0]

    assert question.picture.startswith(settings.MEDIA_BASE_URL)
    stored = os.path.join(settings.UPLOAD_DIR, question.picture.rsplit("/", 1)[1])
    with open(stored, "rb") as f:
        assert f.read() == b"\x89PNG fake image"


def test_bad_picture_fails_whole_request(db, owner, bank):
    item = fill_in(bank["c1"].id)
    item.picture_base64 = "not base64!"
    with pytest.raises(UploadFailed):
        create(db, owner, item)
    assert len(question_service.list(db, owner, chapter_id=bank["c1"].id)) == 10


def test_update_by_stranger_denied(db, stranger, bank):
    with pytest.raises(NoPermission):
        question_service.update(db, bank["easy"][0].id, QuestionUpdate(content="Hijacked"), stranger)


def test_preview_distractors():
    answers = question_service.preview_distractors(
        DistractorRequest(content="[__] then [__]", correct_value="a[__]b", quantity=1, seed=1)
    )
    assert [answer.value for answer in answers] == ["b[__]a"]


def test_answer_count_fits_the_alphabet():
    answers = [AnswerBase(value="right", score=1, is_correct=True)] + [
        AnswerBase(value=f"wrong {i}") for i in range(MAX_ANSWERS)
    ]
    with pytest.raises(InvalidAnswerSet):
        build_answer_set("Pick one", CategoryEnum.SINGLE_CHOICE, answers)
    assert len(build_answer_set("Pick one", CategoryEnum.SINGLE_CHOICE, answers[:MAX_ANSWERS])) == MAX_ANSWERS


def test_fill_in_wrong_answers_capped():
    correct = AnswerBase(value="a[__]b[__]c[__]d[__]e", score=1, is_correct=True)
    content = "[__] [__] [__] [__] [__]"

    with pytest.raises(InvalidAnswerSet):
        build_answer_set(content, CategoryEnum.FILL_IN, [correct], 30, random.Random(0))

    answers = build_answer_set(content, CategoryEnum.FILL_IN, [correct], MAX_ANSWERS - 1, random.Random(0))
    assert len(answers) == MAX_ANSWERS
    assert len({answer.value for answer in answers}) == MAX_ANSWERS


def test_wrong_answer_quantity_bounded_on_requests():
    with pytest.raises(ValidationError):
        fill_in("chapter-1", wrong=MAX_ANSWERS)
    with pytest.raises(ValidationError):
        QuestionUpdate(quantity_wrong_answers=MAX_ANSWERS)
    with pytest.raises(ValidationError):
        DistractorRequest(content="[__] then [__]", correct_value="a[__]b", quantity=MAX_ANSWERS)
