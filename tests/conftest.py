"""
Pytest configuration and shared fixtures.

Every test runs against a fresh in-memory SQLite database. The LLM is never
called for real: pipeline tests use ``FakeLLM`` and the client tests use
``httpx.MockTransport``.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("OPENROUTER_API_KEY", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from quizmaster.db import Base, get_db
from quizmaster.llm_client import get_llm_client
from quizmaster.main import app
from quizmaster.routers.auth import User, get_current_user
from quizmaster.schemas import CreateFlashcardRequest, CreateQuizRequest
from quizmaster import content


class FakeLLM:
    """Scripted stand-in for OpenRouterClient."""

    model = "test/default-model"

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def resolve_model(self, model):
        if model is not None and model.strip():
            return model
        return self.model

    async def complete(self, messages, model=None):
        self.calls.append({"messages": messages, "model": self.resolve_model(model)})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def client(session_factory, fake_llm):
    """TestClient acting as user "alice" unless ``act_as`` says otherwise."""

    def override_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    current = {"username": "alice"}
    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_current_user] = lambda: User(username=current["username"])
    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    test_client = TestClient(app)
    test_client.act_as = lambda name: current.update(username=name)
    yield test_client
    app.dependency_overrides.clear()


def quiz_payload(**overrides):
    payload = {
        "title": "Capitals of Europe",
        "description": "Geography basics",
        "tags": ["geography"],
        "is_public": True,
        "time_limit": 10,
        "questions": [
            {
                "text": "Capital of France?",
                "type": "SINGLE_CHOICE",
                "options": [
                    {"text": "Paris", "is_correct": True},
                    {"text": "Lyon", "is_correct": False},
                ],
            },
            {
                "text": "Which are EU members?",
                "type": "MULTIPLE_CHOICE",
                "options": [
                    {"text": "Spain", "is_correct": True},
                    {"text": "Italy", "is_correct": True},
                    {"text": "Norway", "is_correct": False},
                ],
            },
            {
                "text": "Berlin is in Germany.",
                "type": "TRUE_FALSE",
                "options": [
                    {"text": "True", "is_correct": True},
                    {"text": "False", "is_correct": False},
                ],
            },
        ],
    }
    payload.update(overrides)
    return payload


def deck_payload(n_cards=10, **overrides):
    payload = {
        "title": "Spanish verbs",
        "description": "Common verbs",
        "tags": ["spanish"],
        "is_public": False,
        "cards": [
            {"front": f"verb {i}", "back": f"meaning {i}", "position": i}
            for i in range(n_cards)
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def quiz(db):
    return content.create_quiz(db, CreateQuizRequest.model_validate(quiz_payload()), "owner")


@pytest.fixture
def deck(db):
    return content.create_flashcard(db, CreateFlashcardRequest.model_validate(deck_payload()), "owner")
