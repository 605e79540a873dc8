"""Question catalog: the seeded JSON files and their copy in the relational store."""

import json
import logging
import re
from collections.abc import Iterable
from functools import lru_cache
from pathlib import Path

from pydantic import ValidationError
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.config import settings
from examprep.db.models import QuestionDB
from examprep.models.question import (
    Question,
    QuestionFilters,
    SeedReport,
    SeedStatus,
)

logger = logging.getLogger(__name__)


class QuestionNotFoundError(LookupError):
    """No question matches the given id or slug."""


def chapter_to_slug(chapter: str) -> str:
    """'Units and Measurements' -> 'units-and-measurements'."""
    return re.sub(r"[^a-z0-9]+", "-", chapter.lower()).strip("-")


def slug_to_chapter(slug: str, questions: Iterable[Question]) -> str | None:
    for q in questions:
        if chapter_to_slug(q.chapter) == slug:
            return q.chapter
    return None


@lru_cache(maxsize=8)
def load_local_catalog(questions_dir: Path | None = None) -> tuple[Question, ...]:
    """Load every question from the JSON files in ``questions_dir``.

    Files hold either a bare list or ``{"questions": [...]}``. Invalid records
    are logged and skipped so one bad entry does not hide the rest.
    """
    questions_dir = questions_dir or settings.questions_dir
    if not questions_dir.exists():
        logger.warning(f"Questions directory not found: {questions_dir}")
        return ()

    questions: list[Question] = []
    seen: set[str] = set()
    for json_file in sorted(questions_dir.glob("*.json")):
        logger.debug(f"Loading {json_file.name}...")
        with open(json_file, encoding="utf-8") as f:
            data = json.load(f)

        records = data if isinstance(data, list) else data.get("questions", [])
        for record in records:
            try:
                question = Question(**record)
            except ValidationError as e:
                logger.error(f"Skipping invalid question in {json_file.name}: {e}")
                continue
            if question.slug in seen:
                logger.warning(f"Duplicate slug {question.slug} in {json_file.name}, keeping the first")
                continue
            seen.add(question.slug)
            questions.append(question)

    logger.info(f"Loaded {len(questions)} questions from {questions_dir}")
    return tuple(questions)


def filter_questions(questions: Iterable[Question], filters: QuestionFilters) -> list[Question]:
    """Apply catalog filters to an in-memory list."""
    result = []
    for q in questions:
        if filters.exam and q.exam != filters.exam:
            continue
        if filters.subject and q.subject != filters.subject:
            continue
        if filters.chapter and q.chapter != filters.chapter:
            continue
        if filters.class_level and q.class_level != filters.class_level:
            continue
        if filters.difficulty and q.difficulty != filters.difficulty:
            continue
        result.append(q)
    return result


class QuestionCatalogService:
    """Reads and seeds the question catalog in the relational store."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_questions(self, filters: QuestionFilters) -> list[Question]:
        """Questions matching the filters, in seed order."""
        query = select(QuestionDB)

        if filters.exam:
            query = query.where(QuestionDB.exam == filters.exam)
        if filters.subject:
            query = query.where(QuestionDB.subject == filters.subject)
        if filters.chapter:
            query = query.where(QuestionDB.chapter == filters.chapter)
        if filters.class_level:
            query = query.where(QuestionDB.class_level == filters.class_level)
        if filters.difficulty:
            query = query.where(QuestionDB.difficulty == filters.difficulty.value)

        query = query.order_by(QuestionDB.created_at, QuestionDB.position)
        result = await self.db.execute(query)
        return [self._db_to_model(q) for q in result.scalars().all()]

    async def all_questions(self, exam: str | None = None) -> list[Question]:
        return await self.list_questions(QuestionFilters(exam=exam))

    async def find(self, question_ref: str) -> Question | None:
        """Look a question up by store id or slug."""
        result = await self.db.execute(
            select(QuestionDB).where(
                or_(QuestionDB.id == question_ref, QuestionDB.slug == question_ref)
            )
        )
        db_question = result.scalars().first()
        if not db_question:
            return None
        return self._db_to_model(db_question)

    async def resolve(self, question_ref: str) -> Question:
        question = await self.find(question_ref)
        if question is None:
            raise QuestionNotFoundError(f"Question {question_ref} not found")
        return question

    async def pool(self, exam: str | None = None) -> list[Question]:
        """Mock test pool: the stored catalog, or the local files before seeding."""
        exam = exam or settings.default_exam
        questions = await self.all_questions(exam)
        if questions:
            return questions
        logger.info("No stored questions yet, drawing the mock test from the local catalog")
        return filter_questions(load_local_catalog(), QuestionFilters(exam=exam))

    async def seed(self, questions: Iterable[Question]) -> SeedReport:
        """Upsert questions keyed by slug. Running it twice changes nothing."""
        questions = list(questions)
        result = await self.db.execute(select(QuestionDB))
        existing = {q.slug: q for q in result.scalars().all()}

        inserted = updated = 0
        for position, question in enumerate(questions):
            db_question = existing.get(question.slug)
            if db_question is None:
                db_question = QuestionDB(slug=question.slug)
                self.db.add(db_question)
                existing[question.slug] = db_question
                inserted += 1
            else:
                updated += 1
            self._apply_fields(db_question, question, position)

        await self.db.flush()
        logger.info(f"Seeded questions: {inserted} inserted, {updated} updated")
        return SeedReport(
            success=True,
            message=f"Seeded {inserted + updated}/{len(questions)} questions",
            inserted=inserted,
            updated=updated,
        )

    async def status(self) -> SeedStatus:
        local = [q for q in load_local_catalog() if q.exam == settings.default_exam]
        stored = await self.all_questions(settings.default_exam)

        chapters: dict[str, list[str]] = {}
        for q in stored:
            subject_chapters = chapters.setdefault(q.subject, [])
            if q.chapter not in subject_chapters:
                subject_chapters.append(q.chapter)

        return SeedStatus(
            local_questions=len(local),
            database_questions=len(stored),
            chapters_by_subject=chapters,
            needs_seed=len(stored) < len(local),
        )

    def _apply_fields(self, db_question: QuestionDB, question: Question, position: int) -> None:
        db_question.title = question.title
        db_question.exam = question.exam
        db_question.subject = question.subject
        db_question.chapter = question.chapter
        db_question.class_level = question.class_level
        db_question.topic = question.topic
        db_question.difficulty = question.difficulty.value
        db_question.question_text = question.question_text
        db_question.set_options(question.options)
        db_question.correct_answer = question.correct_answer
        db_question.explanation = question.explanation
        db_question.set_hints(question.hints)
        db_question.source = question.source
        db_question.year = question.year
        db_question.position = position

    def _db_to_model(self, db_question: QuestionDB) -> Question:
        """Convert database model to Pydantic model."""
        return Question(
            id=db_question.id,
            slug=db_question.slug,
            title=db_question.title,
            exam=db_question.exam,
            subject=db_question.subject,
            chapter=db_question.chapter,
            class_level=db_question.class_level,
            topic=db_question.topic,
            difficulty=db_question.difficulty,
            question_text=db_question.question_text,
            options=db_question.get_options(),
            correct_answer=db_question.correct_answer,
            explanation=db_question.explanation,
            hints=db_question.get_hints(),
            source=db_question.source,
            year=db_question.year,
        )
