"""End-to-end tests through the FastAPI app."""

import json
from urllib.parse import quote

import pytest
from conftest import deck_payload, quiz_payload

from quizmaster.errors import TransportError
from quizmaster.llm_client import get_llm_client
from quizmaster.main import app

pytestmark = pytest.mark.integration


def create_quiz(client, **overrides):
    r = client.post("/quizzes", json=quiz_payload(**overrides))
    assert r.status_code == 200, r.text
    return r.json()


def correct_answers(quiz):
    return {
        q["id"]: [o["id"] for o in q["options"] if o["is_correct"]]
        for q in quiz["questions"]
    }


class TestQuizzes:
    def test_create_and_fetch(self, client):
        quiz = create_quiz(client)
        assert quiz["created_by"] == "alice"
        assert quiz["question_count"] == 3
        assert all(q["id"] and all(o["id"] for o in q["options"]) for q in quiz["questions"])

        r = client.get(f"/quizzes/{quiz['id']}")
        assert r.status_code == 200
        assert r.json()["title"] == "Capitals of Europe"

    def test_list_filters(self, client):
        create_quiz(client, title="Public one", tags=["maps"])
        create_quiz(client, title="Private one", is_public=False)
        client.act_as("bob")
        create_quiz(client, title="Bob public")

        assert len(client.get("/quizzes").json()) == 3
        assert {q["title"] for q in client.get("/quizzes/public").json()} == {"Public one", "Bob public"}
        assert [q["title"] for q in client.get("/quizzes/my").json()] == ["Bob public"]
        assert [q["title"] for q in client.get("/quizzes/tag/maps").json()] == ["Public one"]
        assert [q["title"] for q in client.get("/quizzes/search", params={"keyword": "PRIVATE"}).json()] == [
            "Private one"
        ]

    def test_recent_respects_limit(self, client):
        for i in range(4):
            create_quiz(client, title=f"Quiz number {i}")
        assert len(client.get("/quizzes/recent", params={"limit": 2}).json()) == 2
        assert len(client.get("/quizzes/recent").json()) == 4
        assert client.get("/quizzes/recent", params={"limit": 0}).status_code == 400

    def test_tag_filter_matches_whole_tags(self, client):
        create_quiz(client, title="Algebra", tags=["math"])
        create_quiz(client, title="Calculus", tags=["mathematics"])
        create_quiz(client, title="Pastry", tags=["café", "50%_off"])
        create_quiz(client, title="Plain", tags=["50x off"])

        assert [q["title"] for q in client.get("/quizzes/tag/math").json()] == ["Algebra"]
        assert [q["title"] for q in client.get("/quizzes/tag/" + quote("café")).json()] == ["Pastry"]
        assert [q["title"] for q in client.get("/quizzes/tag/" + quote("50%_off")).json()] == ["Pastry"]
        assert client.get("/quizzes/tag/mat").json() == []

    def test_validation_error_shape(self, client):
        r = client.post("/quizzes", json=quiz_payload(title="ab"))
        assert r.status_code == 400
        body = r.json()
        assert body["kind"] == "validation_error"
        assert "title" in body["details"]

    def test_question_needs_two_options(self, client):
        payload = quiz_payload()
        payload["questions"][0]["options"] = payload["questions"][0]["options"][:1]
        assert client.post("/quizzes", json=payload).status_code == 400

    def test_unknown_quiz(self, client):
        r = client.get("/quizzes/nope")
        assert r.status_code == 404
        assert r.json()["kind"] == "not_found"

    def test_only_owner_deletes(self, client):
        quiz = create_quiz(client)
        client.act_as("bob")
        r = client.delete(f"/quizzes/{quiz['id']}")
        assert r.status_code == 403
        assert r.json()["kind"] == "forbidden"

        client.act_as("alice")
        assert client.delete(f"/quizzes/{quiz['id']}").status_code == 200
        assert client.get(f"/quizzes/{quiz['id']}").status_code == 404


class TestAttemptFlow:
    def test_start_submit_and_conflict(self, client):
        quiz = create_quiz(client)
        client.act_as("bob")

        started = client.post(f"/quizzes/{quiz['id']}/start").json()
        assert started["unanswered"] == 3
        assert started["completed"] is False

        url = f"/quizzes/attempts/{started['id']}/submit"
        r = client.post(url, json={"answers": correct_answers(quiz), "time_spent": 75})
        assert r.status_code == 200
        result = r.json()
        assert result["score"] == 100
        assert result["quiz_title"] == "Capitals of Europe"

        again = client.post(url, json={"answers": {}})
        assert again.status_code == 409
        assert again.json()["kind"] == "conflict"

        mine = client.get("/quizzes/attempts/my").json()
        assert [a["score"] for a in mine] == [100]

    def test_empty_submission(self, client):
        quiz = create_quiz(client)
        started = client.post(f"/quizzes/{quiz['id']}/start").json()
        result = client.post(f"/quizzes/attempts/{started['id']}/submit", json={"answers": {}}).json()
        assert result["unanswered"] == 3
        assert result["score"] == 0

    def test_other_user_cannot_submit_or_read(self, client):
        quiz = create_quiz(client)
        started = client.post(f"/quizzes/{quiz['id']}/start").json()

        client.act_as("mallory")
        assert client.post(f"/quizzes/attempts/{started['id']}/submit", json={"answers": {}}).status_code == 403
        assert client.get(f"/quizzes/attempts/{started['id']}").status_code == 403


class TestFlashcards:
    def test_study_flow(self, client):
        deck = client.post("/flashcards", json=deck_payload()).json()
        assert deck["card_count"] == 10

        study = client.post(f"/flashcards/{deck['id']}/start").json()
        assert study["cards_to_review"] == 10

        card_ids = [c["id"] for c in deck["cards"]][:6]
        results = {cid: i < 4 for i, cid in enumerate(card_ids)}
        done = client.post(
            f"/flashcards/studies/{study['id']}/submit",
            json={"card_results": results, "time_spent": 30},
        ).json()
        assert (done["cards_studied"], done["cards_remembered"], done["cards_to_review"]) == (6, 4, 6)

        assert client.post(f"/flashcards/studies/{study['id']}/submit", json={}).status_code == 409

    def test_cards_ordered_by_position(self, client):
        payload = deck_payload(n_cards=0)
        payload["cards"] = [
            {"front": "second", "back": "2", "position": 2},
            {"front": "first", "back": "1", "position": 1},
        ]
        deck = client.post("/flashcards", json=payload).json()
        assert [c["front"] for c in deck["cards"]] == ["first", "second"]

    def test_search_and_recent(self, client):
        client.post("/flashcards", json=deck_payload(title="Spanish verbs"))
        client.post("/flashcards", json=deck_payload(title="German nouns", tags=["german"]))
        found = client.get("/flashcards/search", params={"keyword": "spanish"}).json()
        assert [d["title"] for d in found] == ["Spanish verbs"]
        assert len(client.get("/flashcards/recent", params={"limit": 1}).json()) == 1
        assert [d["title"] for d in client.get("/flashcards/tag/german").json()] == ["German nouns"]

    def test_deck_needs_cards(self, client):
        assert client.post("/flashcards", json=deck_payload(n_cards=0)).status_code == 400


class TestAi:
    def test_generate_quiz(self, client, fake_llm):
        fake_llm.replies.append(
            "```json\n"
            + json.dumps(
                {
                    "title": "Rivers",
                    "description": "Rivers of the world",
                    "questions": [
                        {
                            "text": "Longest river?",
                            "type": "SINGLE_CHOICE",
                            "options": [
                                {"text": "Nile", "isCorrect": True},
                                {"text": "Thames", "isCorrect": False},
                            ],
                        }
                    ],
                }
            )
            + "\n```"
        )
        r = client.post("/ai/generate/quiz", json={"topic": "rivers", "difficulty": "easy", "number_of_questions": 1})
        assert r.status_code == 200, r.text
        quiz = r.json()
        assert quiz["is_public"] is True
        assert quiz["time_limit"] == 30
        assert quiz["tags"] == ["rivers"]
        assert quiz["created_by"] == "alice"

    def test_generate_failure_is_502(self, client, fake_llm):
        fake_llm.replies.append("no json here")
        r = client.post("/ai/generate/flashcard", json={"topic": "rivers"})
        assert r.status_code == 502
        assert r.json()["kind"] == "generation_error"
        assert client.get("/flashcards").json() == []

    @pytest.mark.parametrize("path, body", [
        ("/ai/generate/quiz", {"topic": "rivers", "difficulty": "easy"}),
        ("/ai/generate/flashcard", {"topic": "rivers"}),
    ])
    def test_generate_without_api_key(self, client, path, body):
        # Real client dependency; the test environment has no OPENROUTER_API_KEY
        app.dependency_overrides.pop(get_llm_client)
        r = client.post(path, json=body)
        assert r.status_code == 502
        assert r.json()["kind"] == "generation_error"
        assert "OPENROUTER_API_KEY" in r.json()["message"]
        assert client.get("/quizzes").json() == []
        assert client.get("/flashcards").json() == []

    def test_generate_requires_topic(self, client):
        r = client.post("/ai/generate/quiz", json={"topic": " ", "difficulty": "easy"})
        assert r.status_code == 400

    def test_chat_flow(self, client, fake_llm):
        fake_llm.replies.append("Hello! How can I help?")
        session = client.post("/ai/chat/sessions").json()
        assert session["title"] == "New Chat"

        r = client.post(f"/ai/chat/sessions/{session['id']}/messages", json={"content": "Hi!"})
        assert r.status_code == 200
        assert r.json()["role"] == "assistant"

        stored = client.get(f"/ai/chat/sessions/{session['id']}").json()
        assert stored["title"] == "Hi!"
        assert [m["role"] for m in stored["messages"]] == ["user", "assistant"]

        client.act_as("bob")
        assert client.get(f"/ai/chat/sessions/{session['id']}").status_code == 403
        assert client.get("/ai/chat/sessions").json() == []

    def test_chat_transport_error_is_502(self, client, fake_llm):
        fake_llm.replies.append(TransportError("Failed to call OpenRouter API: HTTP 500"))
        session = client.post("/ai/chat/sessions", params={"title": "Keep"}).json()
        r = client.post(f"/ai/chat/sessions/{session['id']}/messages", json={"content": "Hi"})
        assert r.status_code == 502
        assert r.json()["kind"] == "transport_error"

    def test_chat_message_length_limit(self, client):
        session = client.post("/ai/chat/sessions").json()
        r = client.post(f"/ai/chat/sessions/{session['id']}/messages", json={"content": "x" * 2001})
        assert r.status_code == 400

    def test_delete_session(self, client):
        session = client.post("/ai/chat/sessions").json()
        assert client.delete(f"/ai/chat/sessions/{session['id']}").status_code == 200
        assert client.get(f"/ai/chat/sessions/{session['id']}").status_code == 404


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/info").json()["llm_configured"] is False
