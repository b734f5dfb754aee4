"""
Fill-in-the-blank helpers

Question content marks each gap with PLACEHOLDER; the correct answer lists the
gap values in order, joined by the same PLACEHOLDER:

    content: "[__] is the capital of [__]"
    answer:  "Paris[__]France"

Wrong answers are permutations of the correct answer's segments.
"""
import itertools
import logging
import math
import random
from typing import List, Optional

from exambank.config import settings
from exambank.exceptions import InvalidFillInFormat, TooManyDistractorsRequested
from exambank.schemas.answer import AnswerBase
from exambank.utils.shuffle import shuffle

logger = logging.getLogger(__name__)

PLACEHOLDER = "[__]"


def count_blanks(content: str) -> int:
    return content.count(PLACEHOLDER)


def split_segments(value: str) -> List[str]:
    """
    Split an answer value into its blank values

    The value may not start or end with the placeholder and two placeholders may
    not touch: every segment must hold at least one character.
    """
    if value.startswith(PLACEHOLDER) or value.endswith(PLACEHOLDER):
        raise InvalidFillInFormat(f"Answer '{value}' cannot start or end with {PLACEHOLDER}")
    segments = value.split(PLACEHOLDER)
    if any(segment == "" for segment in segments):
        raise InvalidFillInFormat(f"Answer '{value}' has an empty value between two {PLACEHOLDER}")
    return segments


def validate_fill_in(content: str, correct_value: str) -> List[str]:
    """Check the content gaps match the correct answer; returns its segments"""
    segments = split_segments(correct_value)
    blanks = count_blanks(content)
    if blanks == 0:
        raise InvalidFillInFormat("Fill-in question content has no blank")
    if blanks != len(segments):
        raise InvalidFillInFormat(
            f"Content has {blanks} blank(s) but the correct answer fills {len(segments)}"
        )
    return segments


def max_distractors(segment_count: int) -> int:
    """k! - 1: every ordering of the segments except the correct one"""
    return math.factorial(segment_count) - 1


def generate_distractors(
    correct_answer: AnswerBase,
    content: str,
    quantity: int,
    rng: Optional[random.Random] = None,
) -> List[AnswerBase]:
    """
    Generate `quantity` distinct wrong answers for a fill-in question

    Random reshuffles are tried first. Once the retry budget is spent (only
    likely when `quantity` is close to k! - 1) the remaining permutations are
    enumerated in order.
    """
    segments = validate_fill_in(content, correct_answer.value)
    limit = max_distractors(len(segments))
    if quantity > limit:
        raise TooManyDistractorsRequested(quantity, limit)
    if quantity <= 0:
        return []

    seen = {correct_answer.value}
    values: List[str] = []
    budget = settings.DISTRACTOR_RETRY_FACTOR * limit
    attempts = 0

    while len(values) < quantity and attempts < budget:
        attempts += 1
        candidate = PLACEHOLDER.join(shuffle(segments, rng))
        if candidate not in seen:
            seen.add(candidate)
            values.append(candidate)

    if len(values) < quantity:
        logger.info(
            f"Distractor sampling stopped after {attempts} tries "
            f"({len(values)}/{quantity}), enumerating permutations"
        )
        for permutation in itertools.permutations(segments):
            candidate = PLACEHOLDER.join(permutation)
            if candidate not in seen:
                seen.add(candidate)
                values.append(candidate)
                if len(values) == quantity:
                    break

    # Repeated segments collapse permutations below k! - 1
    if len(values) < quantity:
        raise TooManyDistractorsRequested(quantity, len(values))

    return [
        AnswerBase(value=value, score=None, is_correct=False, remark=None)
        for value in values
    ]
