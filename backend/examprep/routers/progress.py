"""Progress tracking API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.api.auth import require_user
from examprep.db import get_db
from examprep.models.progress import ProgressSummary, ProgressUpdate, ProgressUpdateResult
from examprep.models.user import CurrentUser
from examprep.services.progress_tracker import ProgressTrackerService
from examprep.services.question_catalog import QuestionNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/progress", tags=["progress"])


@router.post("", response_model=ProgressUpdateResult)
async def record_progress(
    update: ProgressUpdate,
    user: Annotated[CurrentUser, Depends(require_user)],
    db: AsyncSession = Depends(get_db),
):
    """Record an attempt. Only a correct first attempt earns a leaderboard point."""
    if not update.question_id:
        raise HTTPException(status_code=400, detail="questionId is required")

    service = ProgressTrackerService(db)
    try:
        return await service.record_attempt(
            user,
            update.question_id,
            is_correct=update.is_correct,
            time_taken=update.time_taken,
            is_mock_test=update.is_mock_test,
        )
    except QuestionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("", response_model=ProgressSummary)
async def get_progress(
    user: Annotated[CurrentUser, Depends(require_user)],
    subject: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    """Per-subject attempt counts and accuracy for the current user."""
    service = ProgressTrackerService(db)
    try:
        return await service.summary(user, subject)
    except SQLAlchemyError:
        logger.exception(f"Could not load progress for {user.id}")
        return ProgressSummary(subject_stats=[], total_attempts=0, total_correct=0, accuracy=0.0)
