"""Repository functions for quizzes, questions, attempts and answers."""

from typing import Any, Iterable, Mapping, Optional, Tuple

from sqlalchemy.orm import Session, selectinload

from ..query.fetch import Page, paginate
from ..query.pagination import PaginationOptions
from ..query.predicates import ListingSpec
from ..utils.id_generator import new_id
from .schema import Option, Question, Quiz, QuizAnswer, QuizAttempt

QUIZ_LISTING = ListingSpec(
    model=Quiz,
    searchable=("title",),
    filters={"course_id": "course_id"},
    sortable=("created_at", "title", "total_attempt"),
)

ATTEMPT_LISTING = ListingSpec(
    model=QuizAttempt,
    filters={"quiz_id": "quiz_id", "is_completed": "is_completed", "grade": "grade"},
    sortable=("created_at", "marks_obtained", "correct_rate"),
)

ANSWER_LISTING = ListingSpec(
    model=QuizAnswer,
    filters={"attempt_id": "attempt_id", "is_correct": "is_correct"},
    soft_delete=False,
)


def create_quiz(session: Session, course_id: str, author_id: str, title: str, marks: int = 0) -> Quiz:
    row = Quiz(
        id=new_id(),
        course_id=course_id,
        author_id=author_id,
        title=title,
        marks=marks,
        total_questions=0,
        total_attempt=0,
        is_deleted=False,
    )
    session.add(row)
    session.flush()
    return row


def find_quiz(session: Session, quiz_id: str) -> Optional[Quiz]:
    return session.query(Quiz).filter(Quiz.id == quiz_id, Quiz.is_deleted.is_(False)).first()


def create_question(
    session: Session,
    quiz: Quiz,
    text: str,
    options: Iterable[Tuple[str, bool]],
) -> Question:
    """Create a question with its (text, is_correct) options and bump the quiz's question count."""
    question = Question(id=new_id(), quiz_id=quiz.id, text=text, is_deleted=False)
    for option_text, is_correct in options:
        question.options.append(Option(id=new_id(), text=option_text, is_correct=is_correct))
    quiz.total_questions = (quiz.total_questions or 0) + 1
    session.add_all([question, quiz])
    session.flush()
    return question


def find_question_in_quiz(session: Session, question_id: str, quiz_id: str) -> Optional[Question]:
    return (
        session.query(Question)
        .filter(
            Question.id == question_id,
            Question.quiz_id == quiz_id,
            Question.is_deleted.is_(False),
        )
        .first()
    )


def find_option_in_question(session: Session, option_id: str, question_id: str) -> Optional[Option]:
    return (
        session.query(Option)
        .filter(Option.id == option_id, Option.question_id == question_id)
        .first()
    )


def create_attempt(session: Session, quiz_id: str, user_id: str) -> QuizAttempt:
    row = QuizAttempt(
        id=new_id(),
        quiz_id=quiz_id,
        user_id=user_id,
        is_completed=False,
        is_deleted=False,
    )
    session.add(row)
    session.flush()
    return row


def find_attempt(session: Session, attempt_id: str) -> Optional[QuizAttempt]:
    return (
        session.query(QuizAttempt)
        .options(selectinload(QuizAttempt.quiz), selectinload(QuizAttempt.answers))
        .filter(QuizAttempt.id == attempt_id, QuizAttempt.is_deleted.is_(False))
        .first()
    )


def find_open_attempt(session: Session, attempt_id: str) -> Optional[QuizAttempt]:
    attempt = find_attempt(session, attempt_id)
    if attempt is None or attempt.is_completed:
        return None
    return attempt


def create_answer(
    session: Session,
    attempt: QuizAttempt,
    question_id: str,
    option_id: Optional[str],
    is_correct: bool,
    text_answer: Optional[str] = None,
) -> QuizAnswer:
    row = QuizAnswer(
        id=new_id(),
        attempt=attempt,
        question_id=question_id,
        option_id=option_id,
        text_answer=text_answer,
        is_correct=is_correct,
    )
    session.add(row)
    session.flush()
    return row


def list_quizzes(
    session: Session,
    filters: Mapping[str, Any],
    options: PaginationOptions,
    author_id: Optional[str] = None,
) -> Page:
    scope = [Quiz.author_id == author_id] if author_id else []
    return paginate(session, QUIZ_LISTING, filters, options, scope=scope)


def list_attempts(
    session: Session,
    filters: Mapping[str, Any],
    options: PaginationOptions,
    user_id: Optional[str] = None,
) -> Page:
    scope = [QuizAttempt.user_id == user_id] if user_id else []
    return paginate(session, ATTEMPT_LISTING, filters, options, scope=scope)


def list_answers(
    session: Session,
    filters: Mapping[str, Any],
    options: PaginationOptions,
    attempt_id: Optional[str] = None,
) -> Page:
    scope = [QuizAnswer.attempt_id == attempt_id] if attempt_id else []
    return paginate(session, ANSWER_LISTING, filters, options, scope=scope)
