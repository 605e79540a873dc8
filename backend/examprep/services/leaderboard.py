"""Leaderboard ranking and running totals."""

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.config import settings
from examprep.db.models import LeaderboardEntryDB, ProfileDB
from examprep.models.leaderboard import LeaderboardEntry, LeaderboardResponse, UserRank
from examprep.models.user import CurrentUser

from .realtime import realtime_hub
from .scoring import EntryDelta, accuracy

logger = logging.getLogger(__name__)


def unranked_message(min_correct: int) -> str:
    return f"Solve at least {min_correct} questions to appear on the leaderboard"


def rank_entries(
    entries: Iterable[LeaderboardEntry], min_correct: int | None = None
) -> list[LeaderboardEntry]:
    """Gate, sort and number the leaderboard.

    Entries below ``min_correct`` correct answers are dropped. The rest are
    sorted by score, highest first; equal scores keep their input order.
    Ranks run 1..n over what is left.
    """
    if min_correct is None:
        min_correct = settings.leaderboard_min_correct
    eligible = [e for e in entries if e.correct_answers >= min_correct]
    ordered = sorted(eligible, key=lambda e: -e.score)
    return [e.model_copy(update={"rank": idx + 1}) for idx, e in enumerate(ordered)]


def user_rank(
    ranked: Sequence[LeaderboardEntry],
    own_entry: LeaderboardEntry | None,
    user_id: str,
    min_correct: int | None = None,
) -> UserRank:
    """The user's row from the ranked list, or an unranked status with a hint."""
    if min_correct is None:
        min_correct = settings.leaderboard_min_correct
    for entry in ranked:
        if entry.user_id == user_id:
            return UserRank(**entry.model_dump())

    base = own_entry.model_dump() if own_entry else {"user_id": user_id}
    base["rank"] = None
    return UserRank(**base, message=unranked_message(min_correct))


class LeaderboardService:
    """Reads and adjusts leaderboard entries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_entry(self, user_id: str) -> LeaderboardEntryDB | None:
        return await self.db.get(LeaderboardEntryDB, user_id)

    async def get_or_create_entry(self, user: CurrentUser) -> LeaderboardEntryDB:
        """Entries are created lazily on a user's first scoring event."""
        entry = await self.get_entry(user.id)
        if entry is None:
            entry = LeaderboardEntryDB(
                user_id=user.id,
                username=user.username,
                score=0,
                total_attempts=0,
                correct_answers=0,
            )
            self.db.add(entry)
            await self.db.flush()
            logger.info(f"Created leaderboard entry for {user.id}")
        return entry

    async def apply_delta(self, user: CurrentUser, delta: EntryDelta) -> LeaderboardEntryDB:
        """Add increments to the user's entry; totals are never recomputed."""
        entry = await self.get_or_create_entry(user)
        entry.score += delta.score
        entry.total_attempts += delta.total_attempts
        entry.correct_answers += delta.correct_answers
        entry.username = user.username or entry.username
        entry.updated_at = datetime.utcnow()
        await self.db.flush()
        return entry

    async def add_points(self, user: CurrentUser, points: int) -> LeaderboardEntryDB:
        return await self.apply_delta(user, EntryDelta(score=points))

    async def list_entries(self) -> list[LeaderboardEntry]:
        """All entries in insertion order, joined with profile details."""
        result = await self.db.execute(
            select(LeaderboardEntryDB, ProfileDB)
            .outerjoin(ProfileDB, ProfileDB.id == LeaderboardEntryDB.user_id)
            .order_by(LeaderboardEntryDB.created_at, LeaderboardEntryDB.user_id)
        )
        return [self._to_model(entry, profile) for entry, profile in result.all()]

    async def standings(self, user_id: str | None = None) -> LeaderboardResponse:
        entries = await self.list_entries()
        ranked = rank_entries(entries)

        own_rank = None
        if user_id:
            own_entry = next((e for e in entries if e.user_id == user_id), None)
            own_rank = user_rank(ranked, own_entry, user_id)

        return LeaderboardResponse(
            leaderboard=ranked[: settings.leaderboard_size],
            user_rank=own_rank,
        )

    def publish(self, entry: LeaderboardEntryDB, event: str = "UPDATE") -> None:
        realtime_hub.publish(
            "leaderboard",
            event,
            {
                "user_id": entry.user_id,
                "score": entry.score,
                "total_attempts": entry.total_attempts,
                "correct_answers": entry.correct_answers,
            },
        )

    def _to_model(self, entry: LeaderboardEntryDB, profile: ProfileDB | None) -> LeaderboardEntry:
        return LeaderboardEntry(
            user_id=entry.user_id,
            username=(profile.username if profile and profile.username else entry.username),
            full_name=profile.full_name if profile else None,
            avatar_url=profile.avatar_url if profile else None,
            correct_answers=entry.correct_answers,
            total_attempts=entry.total_attempts,
            accuracy=accuracy(entry.correct_answers, entry.total_attempts),
            score=entry.score,
        )
