"""
Database models package
"""
from exambank.models.answer import Answer
from exambank.models.question import Question
from exambank.models.chapter import Chapter
from exambank.models.lesson import Lesson
from exambank.models.exam import Exam, ExamQuestionRef
from exambank.models.school_class import SchoolClass, ClassLesson

__all__ = [
    "Answer", "Question", "Chapter", "Lesson",
    "Exam", "ExamQuestionRef", "SchoolClass", "ClassLesson",
]
