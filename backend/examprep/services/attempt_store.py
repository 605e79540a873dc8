"""Attempt records: one row per (user, question), overwritten on resubmission."""

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.db.models import AttemptDB
from examprep.models.progress import Attempt


class AttemptStore:
    """Reads and upserts rows of the ``user_progress`` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: str, question_id: str) -> Attempt | None:
        db_attempt = await self._get_row(user_id, question_id)
        if db_attempt is None:
            return None
        return self._db_to_model(db_attempt)

    async def upsert(
        self,
        user_id: str,
        question_id: str,
        is_correct: bool,
        time_taken: int = 0,
        is_mock_test: bool = False,
    ) -> Attempt:
        """Record an outcome, replacing any earlier one for the same question."""
        db_attempt = await self._get_row(user_id, question_id)
        if db_attempt is None:
            db_attempt = AttemptDB(user_id=user_id, question_id=question_id)
            self.db.add(db_attempt)

        db_attempt.is_correct = is_correct
        db_attempt.time_taken = time_taken
        db_attempt.is_mock_test = is_mock_test
        db_attempt.attempted_at = datetime.utcnow()

        await self.db.flush()
        return self._db_to_model(db_attempt)

    async def list_for_user(
        self, user_id: str, question_ids: Iterable[str] | None = None
    ) -> list[Attempt]:
        query = select(AttemptDB).where(AttemptDB.user_id == user_id)
        if question_ids is not None:
            query = query.where(AttemptDB.question_id.in_(list(question_ids)))
        query = query.order_by(AttemptDB.attempted_at)

        result = await self.db.execute(query)
        return [self._db_to_model(a) for a in result.scalars().all()]

    async def _get_row(self, user_id: str, question_id: str) -> AttemptDB | None:
        result = await self.db.execute(
            select(AttemptDB).where(
                AttemptDB.user_id == user_id,
                AttemptDB.question_id == question_id,
            )
        )
        return result.scalar_one_or_none()

    def _db_to_model(self, db_attempt: AttemptDB) -> Attempt:
        return Attempt(
            user_id=db_attempt.user_id,
            question_id=db_attempt.question_id,
            is_correct=db_attempt.is_correct,
            time_taken=db_attempt.time_taken,
            is_mock_test=db_attempt.is_mock_test,
            attempted_at=db_attempt.attempted_at,
        )
