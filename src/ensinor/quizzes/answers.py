"""Short-answer checking with a small typo tolerance, used for typed quiz answers."""

import re
from typing import Iterable

_WHITESPACE = re.compile(r"\s+")

FUZZY_TOLERANCE = 0.2


def normalize(text: str) -> str:
    """Trim, lowercase and collapse runs of whitespace to one space."""
    return _WHITESPACE.sub(" ", text.strip().lower())


def levenshtein_distance(s1: str, s2: str) -> int:
    """Edit distance between two strings."""
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)

    if len(s2) == 0:
        return len(s1)

    previous_row = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


def allowed_distance(expected: str) -> int:
    return max(1, int(len(expected) * FUZZY_TOLERANCE))


def is_short_answer_correct(answer: str, expected_answers: Iterable[str]) -> bool:
    """
    Check a free-text answer against the accepted answers.

    An answer matches an accepted one when, after normalization, it is equal
    to it, contains it, or is within ``max(1, floor(len * 0.2))`` edits of it.

    Args:
        answer: What the student typed
        expected_answers: Accepted answers

    Returns:
        True if any accepted answer matches
    """
    if not answer:
        return False

    given = normalize(answer)
    for expected in expected_answers:
        target = normalize(expected)
        if not target:
            continue
        if given == target or target in given:
            return True
        if levenshtein_distance(given, target) <= allowed_distance(target):
            return True
    return False
