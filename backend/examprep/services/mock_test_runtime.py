"""Live mock test sessions: registry, countdown and result persistence."""

import asyncio
import logging
import random
from collections.abc import Callable, Sequence
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from examprep.config import settings
from examprep.models.mock_test import MockTestQuestion, SessionView
from examprep.models.question import Question
from examprep.models.user import CurrentUser

from .leaderboard import LeaderboardService
from .mock_test import MockTestSession, select_questions
from .progress_tracker import ProgressTrackerService
from .scoring import compute_result

logger = logging.getLogger(__name__)


class SessionNotFoundError(LookupError):
    """No live session with that id for this user."""


def to_test_question(question: Question, reveal: bool = False) -> MockTestQuestion:
    """Shape a catalog question for the test view; answers stay hidden until submit."""
    return MockTestQuestion(
        id=question.question_id,
        question_text=question.question_text,
        options=question.options,
        difficulty=question.difficulty.value,
        chapter=question.chapter,
        subject=question.subject,
        correct_answer=question.correct_answer if reveal else None,
        explanation=question.explanation if reveal else None,
    )


def session_view(session: MockTestSession, exam_name: str | None = None) -> SessionView:
    reveal = session.submitted
    return SessionView(
        id=session.id,
        exam_name=exam_name or settings.mock_test_name,
        stage=session.stage,
        current_index=session.current_index,
        time_remaining=session.time_remaining,
        client_clock=session.client_clock,
        submitted=session.submitted,
        submit_reason=session.submit_reason,
        tab_switch_count=session.tab_switch_count,
        violation_limit=session.violation_limit,
        warning=session.warning,
        questions=[to_test_question(q, reveal) for q in session.questions],
        answers=[a.model_copy() for a in session.answers],
        statuses=[session.question_status(i) for i in range(len(session.questions))],
        result=session.result() if reveal else None,
    )


class MockTestRuntime:
    """Owns the live sessions and the asyncio work attached to them."""

    def __init__(self, tick_seconds: float = 1.0, retention_seconds: float | None = None):
        self.tick_seconds = tick_seconds
        self.retention_seconds = (
            retention_seconds if retention_seconds is not None else settings.mock_test_retention_seconds
        )
        self._sessions: dict[str, MockTestSession] = {}
        self._users: dict[str, CurrentUser] = {}
        self._factories: dict[str, async_sessionmaker[AsyncSession]] = {}
        self._tickers: dict[str, asyncio.Task] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._evictions: dict[str, asyncio.TimerHandle] = {}
        self._background: set[asyncio.Task] = set()
        self._persisted: set[str] = set()

    def start(
        self,
        user: CurrentUser,
        pool: Sequence[Question],
        session_factory: async_sessionmaker[AsyncSession],
        size: int | None = None,
        seed: int | None = None,
        client_clock: bool = False,
    ) -> MockTestSession:
        """Draw a paper and register a new session in the confirm stage.

        With ``client_clock`` the server runs no countdown of its own and the
        client reports each elapsed second.
        """
        rng = random.Random(seed)
        questions = select_questions(pool, size or settings.mock_test_size, rng)
        session_id = str(uuid4())
        session = MockTestSession(
            questions,
            scheduler=self._scheduler_for(session_id),
            session_id=session_id,
            user_id=user.id,
            client_clock=client_clock,
        )

        self._sessions[session.id] = session
        self._users[session.id] = user
        self._factories[session.id] = session_factory
        session.on_stage_change(self._on_stage_change)
        session.on_submit(self._on_submit)

        logger.info(f"Started mock test {session.id} for {user.id} with {len(questions)} questions")
        return session

    def get(self, session_id: str, user: CurrentUser) -> MockTestSession:
        session = self._sessions.get(session_id)
        if session is None or session.user_id != user.id:
            raise SessionNotFoundError(f"Mock test {session_id} not found")
        return session

    def discard(self, session_id: str, user: CurrentUser) -> None:
        """Drop a session; any pending countdown or forced submit is cancelled."""
        self.get(session_id, user)
        self._cancel_work(session_id)
        self._drop(session_id)
        logger.info(f"Discarded mock test {session_id}")

    @property
    def active_count(self) -> int:
        return len(self._sessions)

    # -- timer ---------------------------------------------------------------

    def _on_stage_change(self, session: MockTestSession) -> None:
        if session.is_running and not session.client_clock and session.id not in self._tickers:
            self._tickers[session.id] = asyncio.get_running_loop().create_task(self._run_ticker(session))

    def _on_submit(self, session: MockTestSession) -> None:
        timer = self._timers.pop(session.id, None)
        if timer is not None:
            timer.cancel()
        ticker = self._tickers.pop(session.id, None)
        if ticker is not None and ticker is not asyncio.current_task():
            ticker.cancel()
        self._schedule_eviction(session.id)

    async def _run_ticker(self, session: MockTestSession) -> None:
        while not session.submitted:
            await asyncio.sleep(self.tick_seconds)
            session.tick()
        # reached only when the countdown itself submitted the test
        await self.persist(session)

    def _scheduler_for(self, session_id: str) -> Callable:
        def schedule(delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
            def fire() -> None:
                self._timers.pop(session_id, None)
                callback()
                session = self._sessions.get(session_id)
                if session is not None:
                    self.spawn_persist(session)

            handle = asyncio.get_running_loop().call_later(delay, fire)
            self._timers[session_id] = handle
            return handle

        return schedule

    # -- retention -------------------------------------------------------------

    def _schedule_eviction(self, session_id: str) -> None:
        if session_id in self._evictions:
            return
        self._evictions[session_id] = asyncio.get_running_loop().call_later(
            self.retention_seconds, self._evict, session_id
        )

    def _evict(self, session_id: str) -> None:
        """Forget a submitted session once its results have been saved."""
        self._evictions.pop(session_id, None)
        session = self._sessions.get(session_id)
        if session is None:
            return
        if session_id not in self._persisted:
            self.spawn_persist(session)
            self._schedule_eviction(session_id)
            return
        self._cancel_work(session_id)
        self._drop(session_id)
        logger.info(f"Evicted submitted mock test {session_id}")

    def _drop(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        self._users.pop(session_id, None)
        self._factories.pop(session_id, None)
        self._persisted.discard(session_id)

    # -- persistence -----------------------------------------------------------

    def spawn_persist(self, session: MockTestSession) -> None:
        task = asyncio.get_running_loop().create_task(self.persist(session))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def persist(self, session: MockTestSession) -> None:
        """Record every answered question and credit the leaderboard points.

        Runs at most once per session. Failures are logged and dropped; the
        user still sees their result.
        """
        if not session.submitted or session.id in self._persisted:
            return
        user = self._users.get(session.id)
        factory = self._factories.get(session.id)
        if user is None or factory is None:
            return
        self._persisted.add(session.id)

        result = compute_result(session.questions, session.answers)
        try:
            async with factory() as db:
                tracker = ProgressTrackerService(db)
                recorded = 0
                for question, answer in zip(session.questions, session.answers):
                    if not answer.selected_answer:
                        continue
                    try:
                        await tracker.record_attempt(
                            user,
                            question.question_id,
                            is_correct=answer.selected_answer == question.correct_answer,
                            is_mock_test=True,
                        )
                        recorded += 1
                    except LookupError:
                        logger.warning(f"Mock test {session.id}: question {question.question_id} is not stored, skipped")

                if result.leaderboard_points:
                    leaderboard = LeaderboardService(db)
                    prior = await leaderboard.get_entry(user.id)
                    entry = await leaderboard.add_points(user, result.leaderboard_points)
                    await db.commit()
                    leaderboard.publish(entry, "INSERT" if prior is None else "UPDATE")

            logger.info(
                f"Saved mock test {session.id}: {recorded} attempts, "
                f"+{result.leaderboard_points} leaderboard points"
            )
        except Exception:
            logger.exception(f"Failed to save mock test {session.id} results")

    def is_persisted(self, session_id: str) -> bool:
        return session_id in self._persisted

    # -- lifecycle -------------------------------------------------------------

    def _cancel_work(self, session_id: str) -> None:
        timer = self._timers.pop(session_id, None)
        if timer is not None:
            timer.cancel()
        ticker = self._tickers.pop(session_id, None)
        if ticker is not None:
            ticker.cancel()
        eviction = self._evictions.pop(session_id, None)
        if eviction is not None:
            eviction.cancel()

    async def shutdown(self) -> None:
        for session_id in list(self._sessions):
            self._cancel_work(session_id)
        for task in list(self._background):
            task.cancel()
        self._sessions.clear()
        self._users.clear()
        self._factories.clear()
        self._persisted.clear()
        logger.info("Mock test runtime stopped")


mock_test_runtime = MockTestRuntime()


def get_mock_test_runtime() -> MockTestRuntime:
    return mock_test_runtime

