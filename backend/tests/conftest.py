import itertools

import pytest
from fastapi.testclient import TestClient

from quiz_api.config import Settings
from quiz_api.main import create_app
from quiz_api.models import User
from quiz_api.permissions import Permission

API = "/api/v1"
PASSWORD = "testingPassword123"


@pytest.fixture
def settings(tmp_path, monkeypatch):
    """Settings pointing at a fresh SQLite file for each test."""
    monkeypatch.setenv("ENV", "dev")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setenv("JWT_SECRET", "test-secret-key-for-the-quiz-api-suite")
    monkeypatch.setenv("PASSWORD_HASH_ROUNDS", "1000")
    monkeypatch.delenv("API_PREFIX", raising=False)
    monkeypatch.delenv("API_VERSION", raising=False)
    return Settings()


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    # context manager runs the lifespan so tables exist
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(client):
    """Register and log in a user; returns id, name, token and auth headers."""
    counter = itertools.count(1)

    def _make(name=None, password=PASSWORD):
        name = name or f"user{next(counter)}"
        r = client.post(f"{API}/users/register", json={"name": name, "email": f"{name}@test.com", "password": password})
        assert r.status_code == 201, r.json()
        login = client.post(f"{API}/users/login", json={"name": name, "password": password})
        assert login.status_code == 200, login.json()
        token = login.json()["data"]["accessToken"]
        return {
            "id": r.json()["data"]["_id"],
            "name": name,
            "token": token,
            "headers": {"Authorization": f"Bearer {token}"},
        }
    return _make


@pytest.fixture
def grant_admin(app):
    """Grant ADMIN directly in the store, the way an operator would."""
    def _grant(user_id):
        with app.state.db.session() as session:
            user = session.get(User, user_id)
            user.grant_permission(Permission.ADMIN)
            session.add(user)
            session.commit()
    return _grant
