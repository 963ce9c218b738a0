"""Tests for quiz scoring, short answers and the attempt flow."""

import pytest
from pydantic import ValidationError

from ensinor.api import grading_api, quizzes_api
from ensinor.database.schema import Question, Quiz
from ensinor.errors import BadRequestError, ForbiddenError, NotFoundError
from ensinor.quizzes.answers import is_short_answer_correct, levenshtein_distance, normalize
from ensinor.quizzes.scoring import AttemptScore, pick_grade, score_attempt


class Band:
    def __init__(self, min_score, max_score, grade_label):
        self.min_score = min_score
        self.max_score = max_score
        self.grade_label = grade_label


# --- Scoring -----------------------------------------------------------------


def test_score_attempt_distributes_marks():
    score = score_attempt(correct=3, total_questions=4, total_marks=20)
    assert score == AttemptScore(correct=3, marks_obtained=15, correct_rate=0.75)
    assert score.percentage == 75.0


def test_score_attempt_rounds_marks():
    assert score_attempt(correct=1, total_questions=3, total_marks=10).marks_obtained == 3
    assert score_attempt(correct=2, total_questions=3, total_marks=10).marks_obtained == 7


def test_score_attempt_without_marks_counts_one_per_question():
    score = score_attempt(correct=2, total_questions=5, total_marks=0)
    assert score.marks_obtained == 2


def test_score_attempt_without_questions():
    score = score_attempt(correct=0, total_questions=0, total_marks=10)
    assert score.correct_rate == 0.0
    assert score.marks_obtained == 0


def test_pick_grade_closed_bands():
    bands = [Band(80, 100, "A"), Band(60, 79.99, "B"), Band(0, 59.99, "F")]

    assert pick_grade(bands, 100) == "A"
    assert pick_grade(bands, 80) == "A"
    assert pick_grade(bands, 79.99) == "B"
    assert pick_grade(bands, 0) == "F"
    assert pick_grade(bands, 79.995) is None
    assert pick_grade([], 50) is None


# --- Short answers -----------------------------------------------------------


def test_normalize():
    assert normalize("  The   Mitochondria\n") == "the mitochondria"


@pytest.mark.parametrize(
    "s1,s2,expected",
    [("kitten", "sitting", 3), ("", "abc", 3), ("same", "same", 0), ("flaw", "lawn", 2)],
)
def test_levenshtein_distance(s1, s2, expected):
    assert levenshtein_distance(s1, s2) == expected


@pytest.mark.parametrize(
    "answer,expected",
    [
        ("Photosynthesis", True),
        ("  photosynthesis ", True),
        ("it is photosynthesis", True),
        ("photosynthesys", True),
        ("fotosinthesis", False),
        ("respiration", False),
        ("", False),
    ],
)
def test_is_short_answer_correct(answer, expected):
    assert is_short_answer_correct(answer, ["photosynthesis"]) is expected


def test_short_answer_tolerates_one_edit_on_short_words():
    assert is_short_answer_correct("cat", ["bat"]) is True
    assert is_short_answer_correct("cot", ["bat"]) is False


def test_short_answer_any_accepted():
    assert is_short_answer_correct("H2O", ["water", "h2o"]) is True


# --- Attempt flow ------------------------------------------------------------


def _options(session, quiz):
    """(right_option_id, wrong_option_id) per question, in question order."""
    questions = session.query(Question).filter(Question.quiz_id == quiz.id).order_by(Question.text).all()
    pairs = []
    for question in questions:
        right = next(option for option in question.options if option.is_correct)
        wrong = next(option for option in question.options if not option.is_correct)
        pairs.append((question.id, right.id, wrong.id))
    return pairs


def test_create_quiz_and_add_question(session, instructor, make_course):
    course = make_course()
    quiz = quizzes_api.create_quiz(session, instructor.id, {"course_id": course.id, "title": "Week 1"}).data

    result = quizzes_api.add_question(
        session,
        instructor.id,
        quiz.id,
        {"text": "2 + 2?", "options": [{"text": "4", "is_correct": True}, {"text": "5"}]},
    )

    assert result.data.total_questions == 1


def test_question_needs_a_correct_option(session, instructor, make_course, make_quiz):
    quiz = make_quiz(make_course())

    with pytest.raises(BadRequestError, match="at least one correct option"):
        quizzes_api.add_question(
            session, instructor.id, quiz.id, {"text": "?", "options": [{"text": "a"}, {"text": "b"}]}
        )


def test_only_author_adds_questions(session, make_course, make_quiz, student):
    quiz = make_quiz(make_course())

    with pytest.raises(ForbiddenError):
        quizzes_api.add_question(
            session, student.id, quiz.id, {"text": "?", "options": [{"text": "a", "is_correct": True}, {"text": "b"}]}
        )


def test_full_attempt_is_scored_and_graded(session, make_course, make_quiz, student, default_grading):
    quiz = make_quiz(make_course(), questions=2, marks=10)
    attempt = quizzes_api.start_attempt(session, student.id, quiz.id).data
    (q1, right1, _), (q2, _, wrong2) = _options(session, quiz)

    answer = quizzes_api.record_answer(session, attempt.id, {"question_id": q1, "option_id": right1}).data
    quizzes_api.record_answer(session, attempt.id, {"question_id": q2, "option_id": wrong2})
    assert answer.is_correct is True

    result = quizzes_api.complete_attempt(session, attempt.id).data

    assert result.is_completed is True
    assert result.marks_obtained == 5
    assert result.correct_rate == 0.5
    assert result.grade == "F"
    assert session.get(Quiz, quiz.id).total_attempt == 1


def test_perfect_attempt_gets_top_band(session, make_course, make_quiz, student, default_grading):
    quiz = make_quiz(make_course(), questions=2, marks=10)
    attempt = quizzes_api.start_attempt(session, student.id, quiz.id).data
    for question_id, right, _ in _options(session, quiz):
        quizzes_api.record_answer(session, attempt.id, {"question_id": question_id, "option_id": right})

    result = quizzes_api.complete_attempt(session, attempt.id).data

    assert (result.marks_obtained, result.grade) == (10, "A")


def test_typed_answers_are_checked_against_correct_options(session, make_course, make_quiz, student, default_grading):
    quiz = make_quiz(make_course(), questions=2, marks=10)
    attempt = quizzes_api.start_attempt(session, student.id, quiz.id).data
    (q1, _, _), (q2, _, _) = _options(session, quiz)

    close = quizzes_api.record_answer(session, attempt.id, {"question_id": q1, "text": "  rigt 1 "}).data
    wrong = quizzes_api.record_answer(session, attempt.id, {"question_id": q2, "text": "Wrong 2"}).data

    assert (close.is_correct, close.option_id, close.text_answer) == (True, None, "  rigt 1 ")
    assert wrong.is_correct is False
    assert quizzes_api.complete_attempt(session, attempt.id).data.marks_obtained == 5


@pytest.mark.parametrize("extra", [{}, {"option_id": "opt", "text": "both"}])
def test_answer_needs_exactly_one_of_option_or_text(session, make_course, make_quiz, student, extra):
    quiz = make_quiz(make_course())
    attempt = quizzes_api.start_attempt(session, student.id, quiz.id).data
    (q1, _, _), _ = _options(session, quiz)

    with pytest.raises(ValidationError, match="exactly one of option_id or text"):
        quizzes_api.record_answer(session, attempt.id, {"question_id": q1, **extra})


def test_course_grading_system_wins_over_default(session, instructor, make_course, make_quiz, student, default_grading):
    course = make_course()
    system = grading_api.create_grading_system(session, instructor.id, {"course_id": course.id}).data
    grading_api.add_grade(session, system.id, {"min_score": 0, "max_score": 100, "grade_label": "C"})
    quiz = make_quiz(course)
    attempt = quizzes_api.start_attempt(session, student.id, quiz.id).data

    result = quizzes_api.complete_attempt(session, attempt.id).data

    assert result.grade == "C"
    assert result.marks_obtained == 0


def test_attempt_without_grading_system_is_ungraded(session, make_course, make_quiz, student, caplog):
    quiz = make_quiz(make_course())
    attempt = quizzes_api.start_attempt(session, student.id, quiz.id).data

    result = quizzes_api.complete_attempt(session, attempt.id).data

    assert result.is_completed is True
    assert result.grade is None
    assert "left ungraded" in caplog.text


def test_completed_attempt_is_closed(session, make_course, make_quiz, student, default_grading):
    quiz = make_quiz(make_course())
    attempt = quizzes_api.start_attempt(session, student.id, quiz.id).data
    quizzes_api.complete_attempt(session, attempt.id)
    (q1, right1, _), _ = _options(session, quiz)

    with pytest.raises(BadRequestError, match="already completed"):
        quizzes_api.complete_attempt(session, attempt.id)
    with pytest.raises(BadRequestError, match="not found or already completed"):
        quizzes_api.record_answer(session, attempt.id, {"question_id": q1, "option_id": right1})


def test_answer_must_belong_to_the_quiz(session, make_course, make_quiz, student):
    course = make_course()
    quiz = make_quiz(course, title="One")
    other = make_quiz(course, title="Two")
    attempt = quizzes_api.start_attempt(session, student.id, quiz.id).data
    (foreign_q, foreign_right, _), _ = _options(session, other)
    (own_q, _, _), (_, other_right, _) = _options(session, quiz)

    with pytest.raises(NotFoundError, match="Question not found"):
        quizzes_api.record_answer(session, attempt.id, {"question_id": foreign_q, "option_id": foreign_right})
    with pytest.raises(NotFoundError, match="Option not found"):
        quizzes_api.record_answer(session, attempt.id, {"question_id": own_q, "option_id": other_right})


def test_attempt_listings(session, make_course, make_quiz, student, default_grading):
    quiz = make_quiz(make_course())
    attempt = quizzes_api.start_attempt(session, student.id, quiz.id).data
    (q1, right1, _), _ = _options(session, quiz)
    quizzes_api.record_answer(session, attempt.id, {"question_id": q1, "option_id": right1})
    quizzes_api.complete_attempt(session, attempt.id)

    attempts = quizzes_api.get_my_attempts(session, student.id, {"isCompleted": "true"})
    answers = quizzes_api.get_attempt_answers(session, attempt.id)

    assert attempts.meta.total == 1
    assert answers.meta.total == 1
    assert quizzes_api.get_quizzes(session, {"searchTerm": "quiz"}).meta.total == 1
