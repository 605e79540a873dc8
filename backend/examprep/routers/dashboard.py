"""Dashboard API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.api.auth import require_user
from examprep.db import get_db
from examprep.models.progress import DashboardStats
from examprep.models.user import CurrentUser
from examprep.services.progress_tracker import ProgressTrackerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    user: Annotated[CurrentUser, Depends(require_user)],
    db: AsyncSession = Depends(get_db),
):
    """Totals, chapter and subject completion, and leaderboard rank."""
    try:
        return await ProgressTrackerService(db).dashboard(user)
    except SQLAlchemyError:
        logger.exception(f"Could not build dashboard for {user.id}")
        return DashboardStats()
