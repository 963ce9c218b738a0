"""Quiz attempt scoring and grade lookup."""

from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass
class AttemptScore:
    correct: int
    marks_obtained: int
    correct_rate: float  # 0.0-1.0

    @property
    def percentage(self) -> float:
        return self.correct_rate * 100


def score_attempt(correct: int, total_questions: int, total_marks: int) -> AttemptScore:
    """
    Score an attempt from its number of correct answers.

    Each question is worth ``total_marks / total_questions`` marks, or 1 mark
    when either count is zero. Marks are rounded to the nearest integer.
    """
    if total_questions > 0 and total_marks > 0:
        marks_per_question = total_marks / total_questions
    else:
        marks_per_question = 1

    correct_rate = correct / total_questions if total_questions > 0 else 0.0
    return AttemptScore(
        correct=correct,
        marks_obtained=round(correct * marks_per_question),
        correct_rate=correct_rate,
    )


def pick_grade(grades: Iterable, percentage: float) -> Optional[str]:
    """Label of the first grade whose [min_score, max_score] holds ``percentage``."""
    for grade in grades:
        if grade.min_score <= percentage <= grade.max_score:
            return grade.grade_label
    return None
