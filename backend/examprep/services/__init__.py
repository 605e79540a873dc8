"""Business logic services."""

from .attempt_store import AttemptStore
from .leaderboard import LeaderboardService
from .mock_test import InvalidTransition, MockTestSession
from .mock_test_runtime import MockTestRuntime, SessionNotFoundError, mock_test_runtime
from .progress_tracker import ProgressTrackerService
from .question_catalog import QuestionCatalogService, QuestionNotFoundError
from .realtime import RealtimeHub, realtime_hub

__all__ = [
    "AttemptStore",
    "InvalidTransition",
    "LeaderboardService",
    "MockTestRuntime",
    "MockTestSession",
    "ProgressTrackerService",
    "QuestionCatalogService",
    "QuestionNotFoundError",
    "RealtimeHub",
    "SessionNotFoundError",
    "mock_test_runtime",
    "realtime_hub",
]
