"""
Shared fixtures: a throwaway SQLite database and an API client.
"""
import os
import tempfile

_db_dir = tempfile.mkdtemp(prefix="expense-tracker-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_db_dir, 'test.db')}"
os.environ["SECRET_KEY"] = "test-secret-key"

import pytest
from fastapi.testclient import TestClient
from expense_tracker.main import app
from expense_tracker.db.base import Base
from expense_tracker.db.session import engine, SessionLocal
from expense_tracker.models import User


@pytest.fixture(autouse=True)
def reset_db():
    """Start every test from empty tables."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db):
    """Insert a user directly, bypassing password hashing."""
    def _make_user(email: str) -> User:
        user = User(email=email, hashed_password="not-a-real-hash")
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def register(client):
    """Register through the API and return the issued token."""
    def _register(email: str, password: str = "password123") -> str:
        response = client.post("/api/auth/register", json={"email": email, "password": password})
        assert response.status_code == 201, response.text
        return response.json()["token"]
    return _register


@pytest.fixture
def auth_headers():
    """Build the Authorization header for a token."""
    def _auth_headers(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers
