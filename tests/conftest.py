"""
Shared fixtures: in-memory SQLite database, callers and a seeded question bank
"""
import asyncio
import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = "redis://localhost:1/0"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="exambank-uploads-")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import exambank.models  # noqa: F401
from exambank.database import Base, get_db
from exambank.main import app
from exambank.models.enums import CategoryEnum, LevelEnum
from exambank.schemas.answer import AnswerBase
from exambank.schemas.chapter import ChapterCreate
from exambank.schemas.common import Caller
from exambank.schemas.lesson import LessonCreate
from exambank.schemas.question import QuestionCreate, QuestionsCreateRequest
from exambank.services.chapter_service import chapter_service
from exambank.services.lesson_service import lesson_service
from exambank.services.question_service import question_service

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(tables):
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(tables):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def owner():
    return Caller(id="teacher-1")


@pytest.fixture
def stranger():
    return Caller(id="teacher-2")


@pytest.fixture
def admin():
    return Caller(id="root", roles=["admin"])


def choice_question(content, chapter_id, level):
    return QuestionCreate(
        content=content,
        chapter_id=chapter_id,
        level=level,
        category=CategoryEnum.SINGLE_CHOICE,
        answers=[
            AnswerBase(value="right", score=1, is_correct=True),
            AnswerBase(value="wrong one"),
            AnswerBase(value="wrong two"),
            AnswerBase(value="wrong three"),
        ],
    )


def add_questions(db, caller, chapter_id, level, count, prefix):
    request = QuestionsCreateRequest(questions=[
        choice_question(f"{prefix} question {i}", chapter_id, level) for i in range(count)
    ])
    return asyncio.run(question_service.create_many(db, request, caller))


@pytest.fixture
def bank(db, owner):
    """
    Lesson with chapter C1 (10 easy questions) and chapter C2 (5 hard questions)
    """
    lesson = lesson_service.create(db, LessonCreate(name="Algebra"), owner)
    c1 = chapter_service.create(db, ChapterCreate(name="Equations", lesson_id=lesson.id), owner)
    c2 = chapter_service.create(db, ChapterCreate(name="Proofs", lesson_id=lesson.id), owner)
    easy = add_questions(db, owner, c1.id, LevelEnum.REMEMBERING, 10, "Easy")
    hard = add_questions(db, owner, c2.id, LevelEnum.CREATING, 5, "Hard")
    return {
        "lesson": lesson,
        "c1": c1,
        "c2": c2,
        "easy": easy,
        "hard": hard,
    }
