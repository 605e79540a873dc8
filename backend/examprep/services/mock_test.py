"""Mock test session state machine.

A session walks ``confirm -> instructions -> test -> results``. Submission
happens on request, when the countdown runs out, or after repeated tab
switches. Once submitted the answers are frozen; going back from results to
the test stage only allows reviewing them.

The session is clock-agnostic: something outside calls ``tick()`` once per
second. Delayed work (the grace period before a forced submit) goes through
an injected scheduler so the state machine stays synchronous.
"""

import logging
import random
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any
from uuid import uuid4

from examprep.config import settings
from examprep.models.mock_test import (
    Answer,
    MockTestResult,
    QuestionStatus,
    Stage,
    ViolationKind,
)
from examprep.models.question import Question

from .scoring import compute_result

logger = logging.getLogger(__name__)

# scheduler(delay_seconds, callback) -> cancellable handle
Scheduler = Callable[[float, Callable[[], None]], Any]

BLOCKED_WARNINGS = {
    ViolationKind.CLIPBOARD: "Copying is disabled during the test!",
    ViolationKind.CONTEXT_MENU: "Right-click is disabled during the test!",
    ViolationKind.SHORTCUT: "Keyboard shortcuts are disabled!",
}

# seconds a warning stays visible
BLOCKED_WARNING_SECONDS = 2
TAB_SWITCH_WARNING_SECONDS = 3

_FORWARD = {
    Stage.CONFIRM: Stage.INSTRUCTIONS,
    Stage.INSTRUCTIONS: Stage.TEST,
}


class InvalidTransition(Exception):
    """The requested stage change is not allowed from the current stage."""


def select_questions(
    pool: Sequence[Question], n: int, rng: random.Random | None = None
) -> list[Question]:
    """Uniform sample of ``min(n, len(pool))`` questions without replacement.

    No balancing by subject or difficulty. Pass a seeded ``rng`` to get the
    same paper twice.
    """
    rng = rng or random.Random()
    return rng.sample(list(pool), min(max(n, 0), len(pool)))


class MockTestSession:
    """State of one user's mock test, held in memory only."""

    def __init__(
        self,
        questions: Sequence[Question],
        duration_seconds: int | None = None,
        violation_limit: int | None = None,
        grace_seconds: float | None = None,
        scheduler: Scheduler | None = None,
        session_id: str | None = None,
        user_id: str | None = None,
        client_clock: bool = False,
    ):
        self.id = session_id or str(uuid4())
        self.user_id = user_id
        self.client_clock = client_clock  # countdown driven by the client, not the server
        self.questions: list[Question] = list(questions)
        self.answers: list[Answer] = [Answer(question_id=q.question_id) for q in self.questions]
        self.stage = Stage.CONFIRM
        self.current_index = 0
        self.duration_seconds = (
            duration_seconds if duration_seconds is not None else settings.mock_test_duration_seconds
        )
        self.time_remaining = self.duration_seconds
        self.violation_limit = violation_limit if violation_limit is not None else settings.violation_limit
        self.grace_seconds = grace_seconds if grace_seconds is not None else settings.violation_grace_seconds
        self.tab_switch_count = 0
        self.warning: str | None = None
        self._warning_ttl = 0
        self.submitted = False
        self.submit_reason: str | None = None
        self.auto_submit_pending = False
        self.started_at: datetime | None = None
        self.submitted_at: datetime | None = None

        self._scheduler = scheduler
        self._result: MockTestResult | None = None
        self._submit_listeners: list[Callable[["MockTestSession"], None]] = []
        self._stage_listeners: list[Callable[["MockTestSession"], None]] = []

    # -- stage transitions -------------------------------------------------

    def advance(self) -> Stage:
        """Move forward: confirm -> instructions -> test."""
        nxt = _FORWARD.get(self.stage)
        if nxt is None:
            raise InvalidTransition(f"Cannot advance from {self.stage.value}")
        self.stage = nxt
        if nxt is Stage.TEST:
            self.started_at = datetime.utcnow()
        self._notify(self._stage_listeners)
        return self.stage

    def review(self) -> Stage:
        """Return from results to the test view, read-only."""
        if self.stage is not Stage.RESULTS:
            raise InvalidTransition(f"Cannot review from {self.stage.value}")
        self.stage = Stage.TEST
        self._notify(self._stage_listeners)
        return self.stage

    def submit(self, reason: str = "manual") -> bool:
        """Freeze the answers and show results. Repeated calls do nothing."""
        if self.submitted:
            return False
        if self.stage is not Stage.TEST:
            raise InvalidTransition(f"Cannot submit from {self.stage.value}")

        self.submitted = True
        self.submit_reason = reason
        self.submitted_at = datetime.utcnow()
        self.stage = Stage.RESULTS
        self._result = compute_result(self.questions, self.answers)
        logger.info(
            f"Mock test {self.id} submitted ({reason}): "
            f"{self._result.correct} correct, {self._result.wrong} wrong, score {self._result.score}"
        )
        self._notify(self._submit_listeners)
        self._notify(self._stage_listeners)
        return True

    # -- answering ---------------------------------------------------------

    def navigate(self, index: int) -> None:
        self._check_index(index)
        self.current_index = index

    def select_answer(self, index: int, option: str) -> None:
        if self.submitted:
            return
        self._check_index(index)
        option = option.strip().upper()
        if option not in self.questions[index].option_labels:
            raise ValueError(f"Option {option} is not offered for question {index + 1}")
        self.answers[index].selected_answer = option

    def clear_answer(self, index: int) -> None:
        if self.submitted:
            return
        self._check_index(index)
        self.answers[index].selected_answer = None

    def toggle_review(self, index: int) -> bool:
        if self.submitted:
            return self.answers[index].is_marked_for_review
        self._check_index(index)
        answer = self.answers[index]
        answer.is_marked_for_review = not answer.is_marked_for_review
        return answer.is_marked_for_review

    def question_status(self, index: int) -> QuestionStatus:
        answer = self.answers[index]
        if answer.is_marked_for_review and answer.selected_answer:
            return QuestionStatus.REVIEW_ANSWERED
        if answer.is_marked_for_review:
            return QuestionStatus.REVIEW
        if answer.selected_answer:
            return QuestionStatus.ANSWERED
        return QuestionStatus.NOT_VISITED

    # -- clock and proctoring ---------------------------------------------

    @property
    def is_running(self) -> bool:
        return self.stage is Stage.TEST and not self.submitted

    def tick(self) -> None:
        """One second passes. At zero the test submits itself."""
        if not self.is_running:
            return
        self.time_remaining = max(0, self.time_remaining - 1)
        if self._warning_ttl:
            self._warning_ttl -= 1
            if self._warning_ttl == 0:
                self.warning = None
        if self.time_remaining == 0:
            self.submit(reason="time_up")

    def record_violation(self, kind: ViolationKind | str) -> str | None:
        """Register an anti-cheating event and return the warning to show.

        Clipboard, context-menu and shortcut events are blocked and only warn.
        Tab switches count; reaching the limit forces a submit after a short
        grace delay.
        """
        if not self.is_running:
            return None
        kind = ViolationKind(kind)

        if kind is not ViolationKind.VISIBILITY:
            return self._warn(BLOCKED_WARNINGS[kind], BLOCKED_WARNING_SECONDS)

        self.tab_switch_count += 1
        limit = self.violation_limit
        if self.tab_switch_count >= limit:
            self.warning = "Test auto-submitted due to repeated tab switching!"
            self._warning_ttl = 0
            logger.warning(f"Mock test {self.id}: {self.tab_switch_count} tab switches, auto-submitting")
            self._schedule_auto_submit()
            return self.warning
        return self._warn(
            f"Warning {self.tab_switch_count}/{limit}: Tab switching detected! "
            f"Test will auto-submit after {limit} warnings.",
            TAB_SWITCH_WARNING_SECONDS,
        )

    def _warn(self, message: str, seconds: int) -> str:
        self.warning = message
        self._warning_ttl = seconds
        return message

    def _schedule_auto_submit(self) -> None:
        if self.auto_submit_pending:
            return
        self.auto_submit_pending = True
        if self._scheduler is None or self.grace_seconds <= 0:
            self.submit(reason="violations")
        else:
            self._scheduler(self.grace_seconds, lambda: self.submit(reason="violations"))

    # -- results -----------------------------------------------------------

    def result(self) -> MockTestResult:
        """Score sheet; frozen at submission, computed live before it."""
        if self._result is not None:
            return self._result
        return compute_result(self.questions, self.answers)

    def on_submit(self, callback: Callable[["MockTestSession"], None]) -> None:
        self._submit_listeners.append(callback)

    def on_stage_change(self, callback: Callable[["MockTestSession"], None]) -> None:
        self._stage_listeners.append(callback)

    def _notify(self, listeners: list[Callable[["MockTestSession"], None]]) -> None:
        for callback in list(listeners):
            callback(self)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.questions):
            raise IndexError(f"Question index {index} out of range (0-{len(self.questions) - 1})")
