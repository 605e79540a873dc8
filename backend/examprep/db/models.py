"""SQLAlchemy database models."""

import json
from datetime import datetime
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


def generate_uuid() -> str:
    """Generate a UUID string."""
    return str(uuid4())


class ProfileDB(Base):
    """Public profile of an identified user."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    username: Mapped[str | None] = mapped_column(String(50), nullable=True, unique=True)
    full_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    target_exam: Mapped[str] = mapped_column(String(20), default="KEAM")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class QuestionDB(Base):
    """Question database model."""

    __tablename__ = "questions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    slug: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    title: Mapped[str] = mapped_column(String(200), default="")
    exam: Mapped[str] = mapped_column(String(20), nullable=False, index=True, default="KEAM")
    subject: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    chapter: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    class_level: Mapped[int] = mapped_column(Integer, default=11)
    topic: Mapped[str | None] = mapped_column(String(100), nullable=True)
    difficulty: Mapped[str] = mapped_column(String(10), default="medium")
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[str] = mapped_column(Text, nullable=False)  # JSON array
    correct_answer: Mapped[str] = mapped_column(String(5), nullable=False)
    explanation: Mapped[str] = mapped_column(Text, default="")
    hints: Mapped[str] = mapped_column(Text, default="[]")  # JSON array
    source: Mapped[str | None] = mapped_column(String(200), nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    position: Mapped[int] = mapped_column(Integer, default=0)  # seed order
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    def get_options(self) -> list[str]:
        return json.loads(self.options)

    def set_options(self, options: list[str]) -> None:
        self.options = json.dumps(options)

    def get_hints(self) -> list[str]:
        return json.loads(self.hints)

    def set_hints(self, hints: list[str]) -> None:
        self.hints = json.dumps(hints)


class AttemptDB(Base):
    """One attempt outcome per (user, question); resubmissions overwrite it."""

    __tablename__ = "user_progress"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    question_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False)
    time_taken: Mapped[int] = mapped_column(Integer, default=0)  # seconds
    is_mock_test: Mapped[bool] = mapped_column(Boolean, default=False)
    attempted_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "question_id", name="uq_user_progress_user_question"),
    )


class LeaderboardEntryDB(Base):
    """Running leaderboard totals, adjusted by deltas and never recomputed."""

    __tablename__ = "leaderboard"

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    username: Mapped[str] = mapped_column(String(50), default="")
    score: Mapped[int] = mapped_column(Integer, default=0)
    total_attempts: Mapped[int] = mapped_column(Integer, default=0)
    correct_answers: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
