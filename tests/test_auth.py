"""Tests for the bearer-token boundary that supplies the caller id."""

import pytest

from quizmaster.main import app
from quizmaster.routers.auth import get_current_user

pytestmark = pytest.mark.integration


@pytest.fixture
def anon(client):
    # Use real token validation instead of the fixed test user
    app.dependency_overrides.pop(get_current_user, None)
    return client


def register_and_login(client, username="carol", password="s3cret-pass"):
    r = client.post("/auth/register", json={"username": username, "password": password})
    assert r.status_code == 201, r.text
    r = client.post("/auth/token", data={"username": username, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


def test_token_identifies_caller(anon):
    headers = register_and_login(anon)
    assert anon.get("/auth/me", headers=headers).json() == {"username": "carol"}

    quiz = anon.post(
        "/quizzes",
        headers=headers,
        json={
            "title": "Token quiz",
            "questions": [
                {"text": "1+1?", "options": [{"text": "2", "is_correct": True}, {"text": "3"}]}
            ],
        },
    ).json()
    assert quiz["created_by"] == "carol"


def test_missing_token(anon):
    assert anon.get("/quizzes").status_code == 401


def test_bad_token(anon):
    assert anon.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"}).status_code == 401


def test_wrong_password(anon):
    register_and_login(anon, "dave", "right-password")
    r = anon.post("/auth/token", data={"username": "dave", "password": "wrong-password"})
    assert r.status_code == 401


def test_duplicate_username(anon):
    register_and_login(anon, "erin", "password-1")
    r = anon.post("/auth/register", json={"username": "erin", "password": "password-2"})
    assert r.status_code == 409
