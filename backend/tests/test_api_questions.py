"""Tests for the question catalog endpoints."""

from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from examprep.services.question_catalog import QuestionCatalogService


class TestListQuestions:
    def test_lists_stored_questions(self, client, seeded_catalog):
        response = client.get("/api/questions")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == len(seeded_catalog)
        assert len(data["questions"]) == data["total"]
        assert all(q["userStatus"] == "unattempted" for q in data["questions"])

    def test_filters(self, client, seeded_catalog):
        data = client.get(
            "/api/questions", params={"subject": "Physics", "chapter": "Laws of Motion"}
        ).json()
        assert data["total"] == 4
        assert {q["chapter"] for q in data["questions"]} == {"Laws of Motion"}

        class_12 = client.get("/api/questions", params={"classLevel": 12}).json()
        assert class_12["total"] > 0
        assert all(q["class_level"] == 12 for q in class_12["questions"])

        hard = client.get("/api/questions", params={"difficulty": "hard"}).json()
        assert all(q["difficulty"] == "hard" for q in hard["questions"])

    def test_user_status_annotation(self, client, auth_headers, seeded_catalog):
        chapter = [q for q in seeded_catalog if q.chapter == "Sets"]
        client.post("/api/progress", json={"questionId": chapter[0].id, "isCorrect": True}, headers=auth_headers)
        client.post("/api/progress", json={"questionId": chapter[1].id, "isCorrect": False}, headers=auth_headers)

        data = client.get("/api/questions", params={"chapter": "Sets"}, headers=auth_headers).json()
        status = {q["slug"]: q["userStatus"] for q in data["questions"]}

        assert status[chapter[0].slug] == "solved"
        assert status[chapter[1].slug] == "attempted"
        assert status[chapter[2].slug] == "unattempted"

    def test_anonymous_caller_sees_unattempted(self, client, auth_headers, seeded_catalog):
        client.post(
            "/api/progress", json={"questionId": seeded_catalog[0].id, "isCorrect": True}, headers=auth_headers
        )
        data = client.get("/api/questions").json()
        assert all(q["userStatus"] == "unattempted" for q in data["questions"])

    def test_falls_back_to_local_catalog(self, client):
        with patch.object(
            QuestionCatalogService,
            "list_questions",
            side_effect=OperationalError("SELECT", {}, Exception("store down")),
        ):
            response = client.get("/api/questions", params={"subject": "Chemistry"})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 16
        assert all(q["id"] is None for q in data["questions"])

    def test_invalid_class_level(self, client):
        assert client.get("/api/questions", params={"classLevel": 10}).status_code == 422


class TestGetQuestion:
    def test_by_slug_and_id(self, client, seeded_catalog):
        question = seeded_catalog[0]
        by_slug = client.get(f"/api/questions/{question.slug}")
        by_id = client.get(f"/api/questions/{question.id}")

        assert by_slug.status_code == 200
        assert by_slug.json()["id"] == question.id
        assert by_id.json()["slug"] == question.slug

    def test_local_only_question(self, client):
        response = client.get("/api/questions/sets-number-of-subsets")
        assert response.status_code == 200
        assert response.json()["correct_answer"] == "C"

    def test_unknown(self, client, seeded_catalog):
        assert client.get("/api/questions/not-a-question").status_code == 404
