"""
Question / answer label formatting
"""
from typing import Union

from exambank.exceptions import InvalidAnswerSet, InvalidLabelScheme
from exambank.models.enums import QuestionLabelEnum, AnswerLabelEnum

ALPHABET = "abcdefghijklmnopqrstuvwxyz"

# Answers are lettered a..z
MAX_ANSWERS = len(ALPHABET)

_FORMATS = {
    QuestionLabelEnum.END_DOT.value: lambda index: f"Câu {index}.",
    QuestionLabelEnum.END_COLON.value: lambda index: f"Câu {index}:",
    QuestionLabelEnum.END_BRACKET.value: lambda index: f"Câu {index})",
    AnswerLabelEnum.LOW_DOT.value: lambda index: f"{index.lower()}.",
    AnswerLabelEnum.LOW_COLON.value: lambda index: f"{index.lower()}:",
    AnswerLabelEnum.LOW_BRACKET.value: lambda index: f"{index.lower()})",
    AnswerLabelEnum.UP_DOT.value: lambda index: f"{index.upper()}.",
    AnswerLabelEnum.UP_COLON.value: lambda index: f"{index.upper()}:",
    AnswerLabelEnum.UP_BRACKET.value: lambda index: f"{index.upper()})",
}


def handle_label(label: Union[str, QuestionLabelEnum, AnswerLabelEnum], index: object) -> str:
    """
    Render `index` with a label scheme

    Question schemes take the question number ("3" -> "Câu 3."), answer schemes
    take the answer letter ("c" -> "C)"). Anything outside the two enums raises
    InvalidLabelScheme.
    """
    key = label.value if isinstance(label, (QuestionLabelEnum, AnswerLabelEnum)) else label
    try:
        render = _FORMATS[key]
    except (KeyError, TypeError):
        raise InvalidLabelScheme(key)
    return render(str(index))


def question_label(scheme: Union[str, QuestionLabelEnum], position: int) -> str:
    """Label of the question at 0-based `position`"""
    return handle_label(scheme, position + 1)


def answer_label(scheme: Union[str, AnswerLabelEnum], position: int) -> str:
    """Label of the answer at 0-based `position` (a, b, c, ...)"""
    if not 0 <= position < MAX_ANSWERS:
        raise InvalidAnswerSet(f"Answer #{position + 1} cannot be lettered, a question holds at most {MAX_ANSWERS} answers")
    return handle_label(scheme, ALPHABET[position])
