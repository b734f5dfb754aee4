import random

import pytest

from exambank.exceptions import InvalidFillInFormat, TooManyDistractorsRequested
from exambank.schemas.answer import AnswerBase
from exambank.utils.fill_in import (
    count_blanks, generate_distractors, max_distractors, split_segments, validate_fill_in,
)

CONTENT = "[__] is the capital of [__], on the river [__]"
CORRECT = AnswerBase(value="Paris[__]France[__]Seine", score=1, is_correct=True)


def test_split_segments():
    assert split_segments("a[__]b[__]c") == ["a", "b", "c"]
    assert split_segments("single") == ["single"]


@pytest.mark.parametrize("value", ["[__]a", "a[__]", "a[__][__]b", "[__]"])
def test_split_rejects_bad_placeholders(value):
    with pytest.raises(InvalidFillInFormat):
        split_segments(value)


def test_blank_count_must_match():
    assert count_blanks(CONTENT) == 3
    assert validate_fill_in(CONTENT, CORRECT.value) == ["Paris", "France", "Seine"]

    with pytest.raises(InvalidFillInFormat):
        validate_fill_in(CONTENT, "Paris[__]France")
    with pytest.raises(InvalidFillInFormat):
        validate_fill_in("no blanks here", "Paris")


def test_max_distractors():
    assert max_distractors(1) == 0
    assert max_distractors(3) == 5
    assert max_distractors(4) == 23


def test_distractors_are_distinct_permutations():
    distractors = generate_distractors(CORRECT, CONTENT, 4, random.Random(2))
    values = [answer.value for answer in distractors]

    assert len(values) == 4
    assert len(set(values)) == 4
    assert CORRECT.value not in values
    for value in values:
        assert sorted(value.split("[__]")) == ["France", "Paris", "Seine"]
    assert all(not answer.is_correct for answer in distractors)


def test_every_permutation_can_be_requested():
    distractors = generate_distractors(CORRECT, CONTENT, 5, random.Random(0))
    assert len({answer.value for answer in distractors}) == 5


def test_too_many_distractors():
    with pytest.raises(TooManyDistractorsRequested) as error:
        generate_distractors(CORRECT, CONTENT, 6)
    assert error.value.maximum == 5


def test_repeated_segments_limit_distractors():
    correct = AnswerBase(value="x[__]x[__]y", score=1, is_correct=True)
    content = "[__] + [__] = [__]"

    assert len(generate_distractors(correct, content, 2, random.Random(1))) == 2
    with pytest.raises(TooManyDistractorsRequested) as error:
        generate_distractors(correct, content, 3, random.Random(1))
    assert error.value.maximum == 2


def test_zero_distractors():
    assert generate_distractors(CORRECT, CONTENT, 0) == []
