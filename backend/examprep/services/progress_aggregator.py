"""Chapter and subject progress derived from attempts and catalog metadata."""

import logging
from collections.abc import Iterable, Sequence
from typing import Protocol

from examprep.models.progress import (
    ChapterProgress,
    Attempt,
    ProgressReport,
    ProgressRow,
    ProgressTotals,
    SubjectProgress,
    SubjectStats,
)
from examprep.models.question import Question

from .question_catalog import chapter_to_slug
from .scoring import accuracy, dashboard_score, round_half_up

logger = logging.getLogger(__name__)


class _AttemptLike(Protocol):
    question_id: str
    is_correct: bool


def _index_catalog(catalog: Iterable[Question]) -> dict[str, Question]:
    """Attempts may reference a question by store id or by slug."""
    index: dict[str, Question] = {}
    for q in catalog:
        index[q.slug] = q
        if q.id:
            index[q.id] = q
    return index


def aggregate(attempts: Sequence[_AttemptLike], catalog: Sequence[Question]) -> ProgressReport:
    """Join a user's attempts against the catalog.

    Chapter totals count catalog questions, not attempts; subject totals are
    taken from the whole catalog so untouched chapters still count.
    """
    chapters: dict[str, ChapterProgress] = {}
    subject_totals: dict[str, int] = {}
    for q in catalog:
        bucket = chapters.get(q.chapter)
        if bucket is None:
            bucket = ChapterProgress(
                chapter=q.chapter,
                slug=chapter_to_slug(q.chapter),
                subject=q.subject,
                class_level=q.class_level,
            )
            chapters[q.chapter] = bucket
        bucket.total += 1
        subject_totals[q.subject] = subject_totals.get(q.subject, 0) + 1

    index = _index_catalog(catalog)
    correct_answers = 0
    for attempt in attempts:
        if attempt.is_correct:
            correct_answers += 1
        question = index.get(attempt.question_id)
        if question is None:
            logger.debug(f"Attempt for unknown question {attempt.question_id} left out of chapters")
            continue
        bucket = chapters[question.chapter]
        if attempt.is_correct:
            bucket.solved += 1
        else:
            bucket.attempted += 1

    subjects: dict[str, SubjectProgress] = {}
    for bucket in chapters.values():
        subject = subjects.get(bucket.subject)
        if subject is None:
            subject = SubjectProgress(subject=bucket.subject, total=subject_totals.get(bucket.subject, 0))
            subjects[bucket.subject] = subject
        subject.solved += bucket.solved
        subject.attempted += bucket.attempted

    for subject in subjects.values():
        subject.percentage = round_half_up(subject.solved / subject.total * 100) if subject.total else 0

    total_attempts = len(attempts)
    totals = ProgressTotals(
        total_attempts=total_attempts,
        correct_answers=correct_answers,
        accuracy=accuracy(correct_answers, total_attempts),
        score=dashboard_score(correct_answers, total_attempts),
        chapters_completed=sum(1 for c in chapters.values() if c.total and c.solved == c.total),
    )

    return ProgressReport(
        subject_progress=list(subjects.values()),
        chapter_progress=list(chapters.values()),
        totals=totals,
    )


def subject_summary(
    attempts: Sequence[_AttemptLike],
    catalog: Sequence[Question],
    subject: str | None = None,
) -> list[SubjectStats]:
    """Attempt counts and accuracy per subject, as shown on the progress page."""
    index = _index_catalog(catalog)
    stats: dict[str, dict] = {}
    for attempt in attempts:
        question = index.get(attempt.question_id)
        if question is None:
            continue
        if subject and question.subject != subject:
            continue
        s = stats.setdefault(question.subject, {"total": 0, "correct": 0, "chapters": set()})
        s["total"] += 1
        if attempt.is_correct:
            s["correct"] += 1
        s["chapters"].add(question.chapter)

    return [
        SubjectStats(
            subject=name,
            total_attempts=s["total"],
            correct_answers=s["correct"],
            accuracy=accuracy(s["correct"], s["total"]),
            chapters_attempted=len(s["chapters"]),
        )
        for name, s in stats.items()
    ]


def progress_rows(attempts: Sequence[Attempt], catalog: Sequence[Question]) -> list[ProgressRow]:
    """Attempts joined with subject, chapter and difficulty of their question."""
    index = _index_catalog(catalog)
    rows = []
    for attempt in attempts:
        question = index.get(attempt.question_id)
        row = ProgressRow(**attempt.model_dump())
        if question is not None:
            row.subject = question.subject
            row.chapter = question.chapter
            row.difficulty = question.difficulty.value
        rows.append(row)
    return rows
