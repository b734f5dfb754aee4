import random

import pytest

from exambank.exceptions import InsufficientQuestions, RecordUnavailable
from exambank.models.enums import LevelEnum, StatusShareEnum
from exambank.schemas.chapter import ChapterEnableItem, ChapterStatusItem
from exambank.services.chapter_service import chapter_service


def test_sample_draws_distinct_questions_of_level(db, owner, bank):
    drawn = chapter_service.sample(db, bank["c1"].id, LevelEnum.REMEMBERING, 4, owner, random.Random(1))

    ids = [question.id for question in drawn]
    assert len(ids) == 4
    assert len(set(ids)) == 4
    assert set(ids) <= {question.id for question in bank["easy"]}
    assert all(question.level == LevelEnum.REMEMBERING for question in drawn)


def test_sample_whole_pool(db, owner, bank):
    drawn = chapter_service.sample(db, bank["c2"].id, LevelEnum.CREATING, 5, owner)
    assert {question.id for question in drawn} == {question.id for question in bank["hard"]}


def test_insufficient_questions_fails_loudly(db, owner, bank):
    with pytest.raises(InsufficientQuestions) as error:
        chapter_service.sample(db, bank["c2"].id, LevelEnum.CREATING, 6, owner)

    assert error.value.available == 5
    assert error.value.required == 6
    assert "Creating" in error.value.message


def test_other_level_is_not_drawn(db, owner, bank):
    with pytest.raises(InsufficientQuestions) as error:
        chapter_service.sample(db, bank["c1"].id, LevelEnum.CREATING, 1, owner)
    assert error.value.available == 0


def test_private_chapter_unavailable_to_stranger(db, stranger, bank):
    with pytest.raises(RecordUnavailable):
        chapter_service.sample(db, bank["c1"].id, LevelEnum.REMEMBERING, 1, stranger)


def test_public_chapter_available_to_stranger(db, owner, stranger, bank):
    chapter_service.update_status(
        db, [ChapterStatusItem(chapter_id=bank["c1"].id, status=StatusShareEnum.PUBLIC)], owner
    )
    assert len(chapter_service.sample(db, bank["c1"].id, LevelEnum.REMEMBERING, 2, stranger)) == 2


def test_disabled_chapter_unavailable(db, owner, bank):
    chapter_service.enable_many(db, [ChapterEnableItem(chapter_id=bank["c1"].id, enable=False)], owner)
    with pytest.raises(RecordUnavailable):
        chapter_service.sample(db, bank["c1"].id, LevelEnum.REMEMBERING, 1, owner)


def test_sample_leaves_chapter_untouched(db, owner, bank):
    chapter = chapter_service.get_chapter(db, bank["c1"].id)
    before = [dict(question) for question in chapter.questions]

    drawn = chapter_service.sample(db, chapter.id, LevelEnum.REMEMBERING, 10, owner, random.Random(4))
    drawn[0].content = "changed"

    db.refresh(chapter)
    assert chapter.questions == before
