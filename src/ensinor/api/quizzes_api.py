"""Quizzes API: quiz authoring, attempts, answers and attempt completion."""

from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from ..database.course_repo import find_course_for_author
from ..database.grading_repo import resolve_for_course
from ..database.quiz_repo import (
    ANSWER_LISTING,
    ATTEMPT_LISTING,
    QUIZ_LISTING,
    create_answer,
    create_attempt,
    create_question,
    create_quiz as insert_quiz,
    find_attempt,
    find_open_attempt,
    find_option_in_question,
    find_question_in_quiz,
    find_quiz,
    list_answers,
    list_attempts,
    list_quizzes,
)
from ..database.sqlite_client import transaction
from ..database.user_repo import find_active_user
from ..errors import BadRequestError, ForbiddenError, NotFoundError
from ..quizzes.answers import is_short_answer_correct
from ..quizzes.scoring import pick_grade, score_attempt
from ..utils.logging import get_logger
from ..utils.time import utc_now
from .handlers import listing_params, ok, paged, parse_payload
from .models import (
    AnswerCreate,
    ApiResponse,
    QuestionCreate,
    QuizAnswerOut,
    QuizAttemptOut,
    QuizCreate,
    QuizOut,
)

logger = get_logger(__name__)


def create_quiz(session: Session, author_id: str, payload: Any) -> ApiResponse:
    data = parse_payload(QuizCreate, payload)
    if not find_course_for_author(session, data.course_id, author_id):
        raise NotFoundError("Course not found for this author!")

    with transaction(session):
        quiz = insert_quiz(session, data.course_id, author_id, data.title, marks=data.marks)

    return ok("Quiz created successfully", QuizOut.model_validate(quiz))


def add_question(session: Session, author_id: str, quiz_id: str, payload: Any) -> ApiResponse:
    data = parse_payload(QuestionCreate, payload)
    quiz = find_quiz(session, quiz_id)
    if not quiz:
        raise NotFoundError("Quiz not found!")
    if quiz.author_id != author_id:
        raise ForbiddenError("You can only add questions to your own quizzes")
    if not any(option.is_correct for option in data.options):
        raise BadRequestError("A question needs at least one correct option!")

    with transaction(session):
        create_question(session, quiz, data.text, [(option.text, option.is_correct) for option in data.options])

    return ok("Question added successfully", QuizOut.model_validate(quiz))


def start_attempt(session: Session, user_id: str, quiz_id: str) -> ApiResponse:
    user = find_active_user(session, user_id)
    if not user:
        raise NotFoundError("User not found!")
    quiz = find_quiz(session, quiz_id)
    if not quiz:
        raise NotFoundError("Quiz not found!")

    with transaction(session):
        attempt = create_attempt(session, quiz.id, user.id)

    return ok("Quiz attempt started", QuizAttemptOut.model_validate(attempt))


def record_answer(session: Session, attempt_id: str, payload: Any) -> ApiResponse:
    """
    Record one answer on an open attempt.

    The question must belong to the attempt's quiz. A chosen option must
    belong to the question and its correctness is copied. A typed answer is
    checked against the text of the question's correct options.
    """
    data = parse_payload(AnswerCreate, payload)
    attempt = find_open_attempt(session, attempt_id)
    if not attempt:
        raise BadRequestError("Quiz attempt not found or already completed!")

    question = find_question_in_quiz(session, data.question_id, attempt.quiz_id)
    if not question:
        raise NotFoundError("Question not found in this quiz!")
    if data.text is not None:
        accepted = [option.text for option in question.options if option.is_correct]
        option_id = None
        is_correct = is_short_answer_correct(data.text, accepted)
    else:
        option = find_option_in_question(session, data.option_id, question.id)
        if not option:
            raise NotFoundError("Option not found for this question!")
        option_id = option.id
        is_correct = bool(option.is_correct)

    with transaction(session):
        answer = create_answer(session, attempt, question.id, option_id, is_correct, text_answer=data.text)
        attempt.last_activity = utc_now()

    return ok("Answer recorded successfully", QuizAnswerOut.model_validate(answer))


def complete_attempt(session: Session, attempt_id: str) -> ApiResponse:
    """
    Score an attempt, resolve its grade and mark it completed.

    The attempt update and the quiz's attempt counter commit together.

    Raises:
        NotFoundError: Attempt missing
        BadRequestError: Attempt already completed
    """
    attempt = find_attempt(session, attempt_id)
    if not attempt:
        raise NotFoundError("Quiz attempt not found!")
    if attempt.is_completed:
        raise BadRequestError("Quiz attempt already completed!")

    quiz = attempt.quiz
    correct = sum(1 for answer in attempt.answers if answer.is_correct)
    score = score_attempt(correct, quiz.total_questions or 0, quiz.marks or 0)

    grading_system = resolve_for_course(session, quiz.course_id)
    grade = pick_grade(grading_system.grades, score.percentage) if grading_system else None
    if grading_system is None:
        logger.warning(f"No grading system for course {quiz.course_id}; attempt {attempt.id} left ungraded")

    with transaction(session):
        attempt.is_completed = True
        attempt.marks_obtained = score.marks_obtained
        attempt.correct_rate = score.correct_rate
        attempt.grade = grade
        attempt.last_activity = utc_now()
        quiz.total_attempt = (quiz.total_attempt or 0) + 1

    logger.info(f"Attempt {attempt.id} completed: {score.correct} correct, grade={grade}")
    return ok("Quiz attempt completed", QuizAttemptOut.model_validate(attempt))


def get_quizzes(
    session: Session,
    query: Optional[Mapping[str, Any]] = None,
    author_id: Optional[str] = None,
    pagination: Optional[Mapping[str, Any]] = None,
) -> ApiResponse:
    filters, options = listing_params(query, QUIZ_LISTING, pagination)
    page = list_quizzes(session, filters, options, author_id=author_id)
    return paged("Quizzes retrieved successfully", page, QuizOut)


def get_my_attempts(
    session: Session,
    user_id: str,
    query: Optional[Mapping[str, Any]] = None,
    pagination: Optional[Mapping[str, Any]] = None,
) -> ApiResponse:
    filters, options = listing_params(query, ATTEMPT_LISTING, pagination)
    page = list_attempts(session, filters, options, user_id=user_id)
    return paged("Quiz attempts retrieved successfully", page, QuizAttemptOut)


def get_attempt_answers(
    session: Session,
    attempt_id: str,
    query: Optional[Mapping[str, Any]] = None,
    pagination: Optional[Mapping[str, Any]] = None,
) -> ApiResponse:
    filters, options = listing_params(query, ANSWER_LISTING, pagination)
    page = list_answers(session, filters, options, attempt_id=attempt_id)
    return paged("Quiz answers retrieved successfully", page, QuizAnswerOut)
