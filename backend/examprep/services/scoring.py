"""Scoring rules for mock tests, practice attempts and dashboards.

Three distinct quantities live here and must not be merged:

- mock test marks (+4/-1/0) and the leaderboard points they convert to,
- the leaderboard score, one point per question solved on the first try,
- the dashboard score, 10 per correct answer plus an accuracy bonus that
  only unlocks after 10 attempts.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from examprep.models.mock_test import MockTestResult

CORRECT_MARKS = 4
WRONG_MARKS = -1
MOCK_POINTS_MULTIPLIER = 2
MOCK_CORRECT_BONUS = 3

FIRST_SOLVE_POINTS = 1

DASHBOARD_POINTS_PER_CORRECT = 10
DASHBOARD_BONUS_MAX = 50
DASHBOARD_BONUS_MIN_ATTEMPTS = 10


class _Gradable(Protocol):
    correct_answer: str


class _Answered(Protocol):
    selected_answer: str | None


class _Totals(Protocol):
    score: int
    total_attempts: int
    correct_answers: int


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives, like the web client does."""
    return math.floor(value + 0.5)


def accuracy(correct: int, total: int) -> float:
    """Percentage correct with one decimal place; 0 when nothing was attempted."""
    if total <= 0:
        return 0.0
    return round_half_up(correct / total * 1000) / 10


def dashboard_score(correct: int, total: int) -> int:
    bonus = 0
    if total >= DASHBOARD_BONUS_MIN_ATTEMPTS:
        bonus = round_half_up(correct / total * DASHBOARD_BONUS_MAX)
    return correct * DASHBOARD_POINTS_PER_CORRECT + bonus


def compute_result(
    questions: Sequence[_Gradable], answers: Sequence[_Answered]
) -> MockTestResult:
    """Grade a mock test. Pure: same input, same result."""
    correct = wrong = unattempted = 0
    for idx, question in enumerate(questions):
        selected = answers[idx].selected_answer if idx < len(answers) else None
        if not selected:
            unattempted += 1
        elif selected == question.correct_answer:
            correct += 1
        else:
            wrong += 1

    score = correct * CORRECT_MARKS + wrong * WRONG_MARKS
    total = len(questions) * CORRECT_MARKS
    percentage = max(0, round_half_up(score / total * 100)) if total else 0
    leaderboard_points = max(0, score * MOCK_POINTS_MULTIPLIER + correct * MOCK_CORRECT_BONUS)

    return MockTestResult(
        correct=correct,
        wrong=wrong,
        unattempted=unattempted,
        score=score,
        total=total,
        percentage=percentage,
        leaderboard_points=leaderboard_points,
    )


@dataclass(frozen=True)
class EntryDelta:
    """Increments to add to a leaderboard entry."""

    score: int = 0
    total_attempts: int = 0
    correct_answers: int = 0

    @property
    def is_empty(self) -> bool:
        return not (self.score or self.total_attempts or self.correct_answers)


@dataclass(frozen=True)
class EntryTotals:
    score: int = 0
    total_attempts: int = 0
    correct_answers: int = 0


@dataclass(frozen=True)
class AttemptOutcome:
    entry_delta: EntryDelta
    points_earned: int
    entry_after: EntryTotals


def apply_attempt(
    prior_entry: _Totals | None,
    is_correct: bool,
    is_first_attempt: bool,
    was_already_correct: bool,
) -> AttemptOutcome:
    """Leaderboard effect of one practice submission.

    Only the first attempt at a question counts: it adds one attempt, one
    correct answer if right, and one point if right. Later attempts leave the
    entry untouched whatever their outcome.
    """
    before = EntryTotals(
        score=prior_entry.score if prior_entry else 0,
        total_attempts=prior_entry.total_attempts if prior_entry else 0,
        correct_answers=prior_entry.correct_answers if prior_entry else 0,
    )
    if not is_first_attempt:
        return AttemptOutcome(entry_delta=EntryDelta(), points_earned=0, entry_after=before)

    # A first attempt has no prior record, so was_already_correct is normally False.
    points = FIRST_SOLVE_POINTS if is_correct and is_first_attempt and not was_already_correct else 0
    delta = EntryDelta(
        score=points,
        total_attempts=1,
        correct_answers=1 if is_correct else 0,
    )
    after = EntryTotals(
        score=before.score + delta.score,
        total_attempts=before.total_attempts + delta.total_attempts,
        correct_answers=before.correct_answers + delta.correct_answers,
    )
    return AttemptOutcome(entry_delta=delta, points_earned=points, entry_after=after)
