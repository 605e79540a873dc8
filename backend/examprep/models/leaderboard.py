"""Leaderboard models."""

from pydantic import BaseModel, Field

from .base import CamelModel


class LeaderboardEntry(BaseModel):
    """One user's running totals, ranked or not."""

    user_id: str
    username: str = ""
    full_name: str | None = None
    avatar_url: str | None = None
    correct_answers: int = 0
    total_attempts: int = 0
    accuracy: float = 0.0
    score: int = 0
    rank: int | None = None


class UserRank(LeaderboardEntry):
    """The current user's standing; unranked users get a message instead of a rank."""

    message: str | None = None


class LeaderboardResponse(CamelModel):
    leaderboard: list[LeaderboardEntry] = Field(default_factory=list)
    user_rank: UserRank | None = None
