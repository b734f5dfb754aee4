"""
Enumerations shared by models and schemas
"""
from enum import Enum


class StatusShareEnum(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class LevelEnum(str, Enum):
    """Difficulty level (Bloom's taxonomy)"""
    REMEMBERING = "remembering"
    UNDERSTANDING = "understanding"
    APPLYING = "applying"
    ANALYZING = "analyzing"
    EVALUATING = "evaluating"
    CREATING = "creating"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class CategoryEnum(str, Enum):
    ESSAY = "essay"
    SINGLE_CHOICE = "single_choice"
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    FILL_IN = "fill_in"
    MATCHING = "matching"
    ORDERING = "ordering"
    IMAGE_BASED = "image_based"


class QuestionLabelEnum(str, Enum):
    """Question numbering: END_DOT -> 'Câu 1.'"""
    END_DOT = "end_dot"
    END_COLON = "end_colon"
    END_BRACKET = "end_bracket"


class AnswerLabelEnum(str, Enum):
    """Answer lettering: LOW_BRACKET -> 'a)', UP_DOT -> 'A.'"""
    LOW_DOT = "low_dot"
    LOW_COLON = "low_colon"
    LOW_BRACKET = "low_bracket"
    UP_DOT = "up_dot"
    UP_COLON = "up_colon"
    UP_BRACKET = "up_bracket"


def level_name(level) -> str:
    """Human readable name for a level value, tolerant of unknown values"""
    try:
        return LevelEnum(level).display_name
    except ValueError:
        return str(level)
