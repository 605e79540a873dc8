"""User-related Pydantic models."""

from pydantic import BaseModel, Field

from .base import CamelModel

USERNAME_PATTERN = r"^[A-Za-z0-9_]{3,20}$"


class CurrentUser(BaseModel):
    """The identified user for a request."""

    id: str
    email: str | None = None
    username: str = "User"
    full_name: str | None = None
    avatar_url: str | None = None
    target_exam: str = "KEAM"


class UserUpdate(CamelModel):
    """Profile fields the user may change."""

    username: str | None = Field(default=None, pattern=USERNAME_PATTERN)
    full_name: str | None = Field(default=None, max_length=100)
    target_exam: str | None = Field(default=None, max_length=20)


class UserStats(CamelModel):
    total_attempts: int = 0
    correct_answers: int = 0
    accuracy: float = 0.0
    rank: int | None = None
    score: int = 0


class UserProfile(CamelModel):
    """Response for GET /user."""

    user: CurrentUser
    stats: UserStats
