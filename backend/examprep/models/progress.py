"""Attempt recording and progress reporting models."""

from datetime import datetime

from pydantic import Field

from .base import CamelModel


class ProgressUpdate(CamelModel):
    """Body of POST /progress."""

    question_id: str | None = None
    is_correct: bool
    time_taken: int = Field(default=0, ge=0)
    is_mock_test: bool = False


class ProgressUpdateResult(CamelModel):
    success: bool
    is_first_attempt: bool
    points_earned: int
    message: str


class Attempt(CamelModel):
    """A recorded outcome for a (user, question) pair."""

    user_id: str
    question_id: str
    is_correct: bool
    time_taken: int = 0
    is_mock_test: bool = False
    attempted_at: datetime | None = None


class ProgressRow(Attempt):
    """An attempt with the catalog metadata of its question."""

    subject: str | None = None
    chapter: str | None = None
    difficulty: str | None = None


class ChapterProgress(CamelModel):
    chapter: str
    slug: str
    subject: str
    class_level: int
    total: int = 0
    solved: int = 0
    attempted: int = 0  # tried but wrong


class SubjectProgress(CamelModel):
    subject: str
    total: int = 0
    solved: int = 0
    attempted: int = 0
    percentage: int = 0


class ProgressTotals(CamelModel):
    total_attempts: int = 0
    correct_answers: int = 0
    accuracy: float = 0.0
    score: int = 0  # dashboard score, not the leaderboard score
    chapters_completed: int = 0


class ProgressReport(CamelModel):
    """Chapter and subject completion joined against the catalog."""

    subject_progress: list[SubjectProgress] = Field(default_factory=list)
    chapter_progress: list[ChapterProgress] = Field(default_factory=list)
    totals: ProgressTotals = Field(default_factory=ProgressTotals)


class SubjectStats(CamelModel):
    subject: str
    total_attempts: int
    correct_answers: int
    accuracy: float
    chapters_attempted: int


class ProgressSummary(CamelModel):
    """Response for GET /progress."""

    subject_stats: list[SubjectStats]
    total_attempts: int
    total_correct: int
    accuracy: float
    progress: list[ProgressRow] = Field(default_factory=list)


class DashboardStats(CamelModel):
    """Response for GET /dashboard/stats."""

    total_attempts: int = 0
    correct_answers: int = 0
    accuracy: float = 0.0
    score: int = 0
    leaderboard_score: int = 0
    rank: int | None = None
    chapters: int = 0
    subject_progress: list[SubjectProgress] = Field(default_factory=list)
    chapter_progress: list[ChapterProgress] = Field(default_factory=list)
