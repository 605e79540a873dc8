"""Leaderboard API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.api.auth import SessionContext, get_session_context
from examprep.db import get_db
from examprep.models.leaderboard import LeaderboardResponse
from examprep.services.leaderboard import LeaderboardService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/leaderboard", tags=["leaderboard"])


@router.get("", response_model=LeaderboardResponse)
async def get_leaderboard(
    context: Annotated[SessionContext, Depends(get_session_context)],
    db: AsyncSession = Depends(get_db),
):
    """Top users by score, plus the caller's own standing when identified."""
    user_id = context.user.id if context.user else None
    try:
        return await LeaderboardService(db).standings(user_id)
    except SQLAlchemyError:
        logger.exception("Leaderboard unavailable, returning an empty board")
        return LeaderboardResponse()
