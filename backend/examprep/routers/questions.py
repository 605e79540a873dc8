"""Question catalog API endpoints."""

import logging
from collections.abc import Iterable, Sequence
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.api.auth import SessionContext, get_session_context
from examprep.config import settings
from examprep.db import get_db
from examprep.models.progress import Attempt
from examprep.models.question import (
    Difficulty,
    Question,
    QuestionFilters,
    QuestionList,
    QuestionWithStatus,
    UserStatus,
)
from examprep.services.attempt_store import AttemptStore
from examprep.services.question_catalog import (
    QuestionCatalogService,
    filter_questions,
    load_local_catalog,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/questions", tags=["questions"])


def annotate(questions: Iterable[Question], attempts: Sequence[Attempt]) -> list[QuestionWithStatus]:
    """Attach the user's solved/attempted/unattempted status to each question."""
    outcome = {a.question_id: a.is_correct for a in attempts}
    annotated = []
    for q in questions:
        is_correct = outcome.get(q.question_id)
        if is_correct is None:
            status = UserStatus.UNATTEMPTED
        elif is_correct:
            status = UserStatus.SOLVED
        else:
            status = UserStatus.ATTEMPTED
        annotated.append(QuestionWithStatus(**q.model_dump(), user_status=status))
    return annotated


@router.get("", response_model=QuestionList)
async def list_questions(
    context: Annotated[SessionContext, Depends(get_session_context)],
    subject: str | None = None,
    chapter: str | None = None,
    class_level: int | None = Query(None, alias="classLevel", ge=11, le=12),
    difficulty: Difficulty | None = None,
    exam: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    """List catalog questions, annotated with the caller's progress when identified.

    Falls back to the bundled catalog when the store cannot be read.
    """
    filters = QuestionFilters(
        subject=subject,
        chapter=chapter,
        class_level=class_level,
        difficulty=difficulty,
        exam=exam or settings.default_exam,
    )

    try:
        questions = await QuestionCatalogService(db).list_questions(filters)
        attempts: list[Attempt] = []
        if context.user:
            attempts = await AttemptStore(db).list_for_user(
                context.user.id, [q.question_id for q in questions]
            )
    except SQLAlchemyError:
        logger.exception("Question store unavailable, serving the local catalog")
        questions = filter_questions(load_local_catalog(), filters)
        attempts = []

    annotated = annotate(questions, attempts)
    return QuestionList(questions=annotated, total=len(annotated))


@router.get("/{question_ref}", response_model=QuestionWithStatus)
async def get_question(
    question_ref: str,
    context: Annotated[SessionContext, Depends(get_session_context)],
    db: AsyncSession = Depends(get_db),
):
    """Get a single question by store id or slug."""
    question = None
    attempts: list[Attempt] = []
    try:
        question = await QuestionCatalogService(db).find(question_ref)
        if question and context.user:
            attempt = await AttemptStore(db).get(context.user.id, question.question_id)
            attempts = [attempt] if attempt else []
    except SQLAlchemyError:
        logger.exception(f"Question store unavailable while loading {question_ref}")

    if question is None:
        question = next((q for q in load_local_catalog() if q.slug == question_ref), None)
    if question is None:
        raise HTTPException(status_code=404, detail="Question not found")

    return annotate([question], attempts)[0]
