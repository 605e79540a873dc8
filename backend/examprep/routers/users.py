"""Current-user profile endpoints."""

import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.api.auth import require_user
from examprep.db import get_db
from examprep.db.models import ProfileDB
from examprep.models.user import CurrentUser, UserProfile, UserStats, UserUpdate
from examprep.services.progress_tracker import ProgressTrackerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["user"])


@router.get("", response_model=UserProfile)
async def get_current_user_profile(
    user: Annotated[CurrentUser, Depends(require_user)],
    db: AsyncSession = Depends(get_db),
):
    """Profile of the caller with attempt totals and leaderboard standing."""
    try:
        stats = await ProgressTrackerService(db).user_stats(user)
    except SQLAlchemyError:
        logger.exception(f"Could not load stats for {user.id}")
        stats = UserStats()
    return UserProfile(user=user, stats=stats)


@router.put("")
async def update_current_user_profile(
    update: UserUpdate,
    user: Annotated[CurrentUser, Depends(require_user)],
    db: AsyncSession = Depends(get_db),
):
    """Update username, full name or target exam. Omitted fields stay as they are."""
    if update.username:
        result = await db.execute(
            select(ProfileDB.id).where(ProfileDB.username == update.username, ProfileDB.id != user.id)
        )
        if result.scalar_one_or_none():
            raise HTTPException(status_code=400, detail="Username is already taken")

    profile = await db.get(ProfileDB, user.id)
    if profile is None:
        profile = ProfileDB(id=user.id)
        db.add(profile)

    if update.username is not None:
        profile.username = update.username
    if update.full_name is not None:
        profile.full_name = update.full_name
    if update.target_exam is not None:
        profile.target_exam = update.target_exam
    profile.updated_at = datetime.utcnow()

    try:
        await db.flush()
    except IntegrityError:
        raise HTTPException(status_code=400, detail="Username is already taken")

    logger.info(f"Updated profile for {user.id}")
    return {"success": True}
