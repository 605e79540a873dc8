"""Tests for the question catalog."""

import asyncio
import json

import pytest
from pydantic import ValidationError

from examprep.models.question import Difficulty, QuestionFilters
from examprep.services.question_catalog import (
    QuestionCatalogService,
    QuestionNotFoundError,
    chapter_to_slug,
    filter_questions,
    load_local_catalog,
    slug_to_chapter,
)

from .factories import make_question


class TestQuestionModel:
    def test_label_is_normalised(self):
        assert make_question("q", correct_answer=" b ").correct_answer == "B"

    def test_label_must_have_an_option(self):
        with pytest.raises(ValidationError):
            make_question("q", options=["one", "two"], correct_answer="C")

    def test_question_id_prefers_store_id(self):
        assert make_question("q").question_id == "q"
        assert make_question("q", id="abc").question_id == "abc"


class TestLocalCatalog:
    def test_bundled_catalog_loads(self):
        questions = load_local_catalog()
        assert len(questions) >= 40
        assert {q.subject for q in questions} == {"Physics", "Chemistry", "Mathematics"}
        assert len({q.slug for q in questions}) == len(questions)

    def test_skips_invalid_and_duplicate_records(self, tmp_path):
        good = make_question("good").model_dump(mode="json")
        bad = {**good, "slug": "bad", "correct_answer": "Z"}
        (tmp_path / "a.json").write_text(json.dumps({"questions": [good, bad]}))
        (tmp_path / "b.json").write_text(json.dumps([good]))

        questions = load_local_catalog(tmp_path)

        assert [q.slug for q in questions] == ["good"]

    def test_missing_directory(self, tmp_path):
        assert load_local_catalog(tmp_path / "nope") == ()


class TestHelpers:
    def test_chapter_slug_round_trip(self):
        questions = [make_question("q", chapter="Units and Measurements")]
        assert chapter_to_slug("Units and Measurements") == "units-and-measurements"
        assert slug_to_chapter("units-and-measurements", questions) == "Units and Measurements"
        assert slug_to_chapter("optics", questions) is None

    def test_filter_questions(self):
        questions = [
            make_question("a", difficulty="easy"),
            make_question("b", subject="Chemistry", chapter="Solutions", class_level=12),
            make_question("c", difficulty="hard"),
        ]
        assert [q.slug for q in filter_questions(questions, QuestionFilters(class_level=12))] == ["b"]
        easy = filter_questions(questions, QuestionFilters(difficulty=Difficulty.EASY))
        assert [q.slug for q in easy] == ["a"]
        assert len(filter_questions(questions, QuestionFilters(subject="Physics"))) == 2


class TestSeeding:
    def test_seed_twice_changes_nothing(self, session_factory):
        questions = [make_question(f"q-{i}") for i in range(3)]

        async def run():
            async with session_factory() as session:
                service = QuestionCatalogService(session)
                first = await service.seed(questions)
                await session.commit()
                ids = [q.id for q in await service.all_questions()]
                second = await service.seed(questions)
                await session.commit()
                stored = await service.all_questions()
                return first, second, ids, stored

        first, second, ids, stored = asyncio.run(run())

        assert (first.inserted, first.updated) == (3, 0)
        assert (second.inserted, second.updated) == (0, 3)
        assert [q.id for q in stored] == ids
        assert [q.slug for q in stored] == ["q-0", "q-1", "q-2"]

    def test_resolve_by_id_or_slug(self, session_factory):
        async def run():
            async with session_factory() as session:
                service = QuestionCatalogService(session)
                await service.seed([make_question("newton-first-law")])
                await session.commit()
                by_slug = await service.resolve("newton-first-law")
                by_id = await service.resolve(by_slug.id)
                with pytest.raises(QuestionNotFoundError):
                    await service.resolve("missing")
                return by_slug, by_id

        by_slug, by_id = asyncio.run(run())
        assert by_slug == by_id
