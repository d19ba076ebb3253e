"""
Shared fixtures for API tests.

Each test gets a fresh in-memory SQLite database wired into the app through
a get_db override, and an empty undo history registry.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from logic.history import get_history_registry
from main import app


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    get_history_registry().clear()

    yield TestClient(app)

    app.dependency_overrides.clear()
    get_history_registry().clear()


@pytest.fixture
def register_user(client):
    """Register a user and return the response body (including token)."""

    def _register(username="alice", email="alice@example.com", password="secret123"):
        response = client.post(
            "/api/auth/register",
            json={"username": username, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def auth_headers(register_user):
    user = register_user()
    return {"Authorization": f"Bearer {user['token']}"}


@pytest.fixture
def other_headers(register_user):
    user = register_user(username="bob", email="bob@example.com")
    return {"Authorization": f"Bearer {user['token']}"}


@pytest.fixture
def create_map(client, auth_headers):
    """Create a mind map for the default user and return its body."""

    def _create(**fields):
        payload = {"title": "Project plan"}
        payload.update(fields)
        response = client.post("/api/mindmaps/dashboard", json=payload, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create
