"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from ensinor.constants import COURSE_APPROVED, ROLE_INSTRUCTOR, ROLE_STUDENT, ROLE_SUPER_ADMIN
from ensinor.database.course_repo import create_course
from ensinor.database.grading_repo import create_grade, create_grading_system
from ensinor.database.quiz_repo import create_question, create_quiz
from ensinor.database.schema import Base
from ensinor.database.subscription_repo import create_package
from ensinor.database.user_repo import create_user

BASE_TIME = datetime(2025, 1, 1, 12, 0, 0)


@pytest.fixture
def session():
    """Create a temporary in-memory database session for testing."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)

    SessionLocal = sessionmaker(bind=engine, autoflush=False)
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def make_user(session):
    counter = {"n": 0}

    def _make(role=ROLE_STUDENT, **fields):
        counter["n"] += 1
        n = counter["n"]
        fields.setdefault("name", f"User {n}")
        fields.setdefault("email", f"user{n}@example.com")
        user = create_user(session, role=role, **fields)
        session.commit()
        return user

    return _make


@pytest.fixture
def instructor(make_user):
    return make_user(role=ROLE_INSTRUCTOR, name="Ada Instructor", email="ada@example.com")


@pytest.fixture
def student(make_user):
    return make_user(role=ROLE_STUDENT, name="Sam Student", email="sam@example.com")


@pytest.fixture
def admin(make_user):
    return make_user(role=ROLE_SUPER_ADMIN, name="Root Admin", email="root@example.com")


@pytest.fixture
def make_course(session, instructor):
    """Create courses with strictly increasing created_at so default ordering is deterministic."""
    counter = {"n": 0}

    def _make(author=None, **fields):
        counter["n"] += 1
        fields.setdefault("title", f"Course {counter['n']}")
        fields.setdefault("status", COURSE_APPROVED)
        fields.setdefault("created_at", BASE_TIME + timedelta(minutes=counter["n"]))
        course = create_course(session, author_id=(author or instructor).id, **fields)
        session.commit()
        return course

    return _make


@pytest.fixture
def make_quiz(session, instructor):
    def _make(course, questions=2, marks=10, title="Quiz"):
        quiz = create_quiz(session, course.id, instructor.id, title, marks=marks)
        for i in range(questions):
            create_question(
                session,
                quiz,
                f"Question {i + 1}",
                [(f"Right {i + 1}", True), (f"Wrong {i + 1}", False)],
            )
        session.commit()
        return quiz

    return _make


@pytest.fixture
def default_grading(session, admin):
    """Default grading system: A 80-100, B 60-79.99, F 0-59.99."""
    system = create_grading_system(session, admin.id, None, True)
    create_grade(session, system, 80, 100, "A")
    create_grade(session, system, 60, 79.99, "B")
    create_grade(session, system, 0, 59.99, "F")
    session.commit()
    return system


@pytest.fixture
def monthly_package(session):
    package = create_package(session, "Pro Monthly", "monthly", 19.0)
    session.commit()
    return package
