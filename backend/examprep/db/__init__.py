"""Database layer for the KEAM Prep application."""

from .database import async_session, get_db, get_session_factory, init_db
from .models import AttemptDB, Base, LeaderboardEntryDB, ProfileDB, QuestionDB

__all__ = [
    "get_db",
    "get_session_factory",
    "init_db",
    "async_session",
    "Base",
    "AttemptDB",
    "LeaderboardEntryDB",
    "ProfileDB",
    "QuestionDB",
]
