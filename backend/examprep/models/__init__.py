"""Pydantic models for the KEAM Prep application."""

from .leaderboard import LeaderboardEntry, LeaderboardResponse, UserRank
from .mock_test import (
    Answer,
    MockTestPaper,
    MockTestQuestion,
    MockTestResult,
    QuestionStatus,
    SessionView,
    Stage,
    ViolationKind,
)
from .progress import (
    Attempt,
    ChapterProgress,
    DashboardStats,
    ProgressReport,
    ProgressRow,
    ProgressSummary,
    ProgressUpdate,
    ProgressUpdateResult,
    SubjectProgress,
)
from .question import Difficulty, Question, QuestionFilters, QuestionWithStatus, UserStatus
from .user import CurrentUser, UserProfile, UserUpdate

__all__ = [
    "Answer",
    "Attempt",
    "ChapterProgress",
    "CurrentUser",
    "DashboardStats",
    "Difficulty",
    "LeaderboardEntry",
    "LeaderboardResponse",
    "MockTestPaper",
    "MockTestQuestion",
    "MockTestResult",
    "ProgressReport",
    "ProgressRow",
    "ProgressSummary",
    "ProgressUpdate",
    "ProgressUpdateResult",
    "Question",
    "QuestionFilters",
    "QuestionStatus",
    "QuestionWithStatus",
    "SessionView",
    "Stage",
    "SubjectProgress",
    "UserProfile",
    "UserRank",
    "UserStatus",
    "UserUpdate",
    "ViolationKind",
]
