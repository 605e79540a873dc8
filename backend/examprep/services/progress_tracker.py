"""Progress tracking service."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from examprep.config import settings
from examprep.models.progress import (
    DashboardStats,
    ProgressSummary,
    ProgressUpdateResult,
)
from examprep.models.user import CurrentUser, UserStats

from .attempt_store import AttemptStore
from .leaderboard import LeaderboardService
from .progress_aggregator import aggregate, progress_rows, subject_summary
from .question_catalog import QuestionCatalogService
from .realtime import realtime_hub
from .scoring import accuracy, apply_attempt

logger = logging.getLogger(__name__)


class ProgressTrackerService:
    """Records attempts and reports a user's progress."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.catalog = QuestionCatalogService(db)
        self.attempts = AttemptStore(db)
        self.leaderboard = LeaderboardService(db)

    async def record_attempt(
        self,
        user: CurrentUser,
        question_ref: str,
        is_correct: bool,
        time_taken: int = 0,
        is_mock_test: bool = False,
    ) -> ProgressUpdateResult:
        """Store the outcome and update the leaderboard on a first attempt.

        The attempt and the leaderboard are two separate commits. If the
        second one fails the attempt stays recorded and the leaderboard lags.
        """
        question = await self.catalog.resolve(question_ref)

        existing = await self.attempts.get(user.id, question.question_id)
        is_first_attempt = existing is None
        was_already_correct = bool(existing and existing.is_correct)

        await self.attempts.upsert(
            user.id,
            question.question_id,
            is_correct=is_correct,
            time_taken=time_taken,
            is_mock_test=is_mock_test,
        )
        await self.db.commit()
        realtime_hub.publish(
            "user_progress",
            "INSERT" if is_first_attempt else "UPDATE",
            {"user_id": user.id, "question_id": question.question_id, "is_correct": is_correct},
        )

        prior = await self.leaderboard.get_entry(user.id)
        outcome = apply_attempt(prior, is_correct, is_first_attempt, was_already_correct)
        if not outcome.entry_delta.is_empty:
            entry = await self.leaderboard.apply_delta(user, outcome.entry_delta)
            await self.db.commit()
            self.leaderboard.publish(entry, "INSERT" if prior is None else "UPDATE")

        logger.info(
            f"Attempt by {user.id} on {question.slug}: correct={is_correct} "
            f"first={is_first_attempt} points={outcome.points_earned}"
        )
        return ProgressUpdateResult(
            success=True,
            is_first_attempt=is_first_attempt,
            points_earned=outcome.points_earned,
            message=self._message(is_correct, is_first_attempt, outcome.points_earned),
        )

    async def summary(self, user: CurrentUser, subject: str | None = None) -> ProgressSummary:
        attempts = await self.attempts.list_for_user(user.id)
        catalog = await self.catalog.all_questions()
        subject_stats = subject_summary(attempts, catalog, subject)

        total_correct = sum(1 for a in attempts if a.is_correct)
        return ProgressSummary(
            subject_stats=subject_stats,
            total_attempts=len(attempts),
            total_correct=total_correct,
            accuracy=accuracy(total_correct, len(attempts)),
            progress=progress_rows(attempts, catalog),
        )

    async def dashboard(self, user: CurrentUser) -> DashboardStats:
        attempts = await self.attempts.list_for_user(user.id)
        catalog = await self.catalog.all_questions(settings.default_exam)
        report = aggregate(attempts, catalog)

        standings = await self.leaderboard.standings(user.id)
        own = standings.user_rank

        return DashboardStats(
            total_attempts=report.totals.total_attempts,
            correct_answers=report.totals.correct_answers,
            accuracy=report.totals.accuracy,
            score=report.totals.score,
            leaderboard_score=own.score if own else 0,
            rank=own.rank if own else None,
            chapters=report.totals.chapters_completed,
            subject_progress=report.subject_progress,
            chapter_progress=report.chapter_progress,
        )

    async def user_stats(self, user: CurrentUser) -> UserStats:
        attempts = await self.attempts.list_for_user(user.id)
        correct = sum(1 for a in attempts if a.is_correct)
        standings = await self.leaderboard.standings(user.id)
        own = standings.user_rank
        return UserStats(
            total_attempts=len(attempts),
            correct_answers=correct,
            accuracy=accuracy(correct, len(attempts)),
            rank=own.rank if own else None,
            score=own.score if own else 0,
        )

    def _message(self, is_correct: bool, is_first_attempt: bool, points: int) -> str:
        if not is_first_attempt:
            return "Progress updated. Only your first attempt counts towards the leaderboard."
        if points:
            return f"Correct! +{points} point{'s' if points != 1 else ''}"
        if is_correct:
            return "Correct!"
        return "Answer recorded. Review the explanation and keep practising."
