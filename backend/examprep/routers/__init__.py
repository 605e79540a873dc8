"""API routers for the KEAM Prep application."""

from .dashboard import router as dashboard_router
from .leaderboard import router as leaderboard_router
from .mock_test import router as mock_test_router
from .progress import router as progress_router
from .questions import router as questions_router
from .realtime import router as realtime_router
from .seed import router as seed_router
from .users import router as users_router

__all__ = [
    "dashboard_router",
    "leaderboard_router",
    "mock_test_router",
    "progress_router",
    "questions_router",
    "realtime_router",
    "seed_router",
    "users_router",
]
