"""
Pytest configuration and fixtures for the test suite.
"""
import os
from typing import Dict, Generator

import pytest
from fastapi.testclient import TestClient
from jose import jwt

# Set test environment before importing app
os.environ["DATABASE_URL"] = ""
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-purposes-only-32chars"

from smarty.api.deps import get_storage
from smarty.config import settings
from smarty.main import app
from smarty.storage import Storage, memory_storage


def make_token(user_id: str) -> str:
    """Bearer token as the identity provider would issue it."""
    return jwt.encode({"sub": user_id}, settings.jwt_secret, algorithm=settings.jwt_algorithm)


@pytest.fixture
def storage() -> Storage:
    """Fresh in-memory storage for each test."""
    return memory_storage()


@pytest.fixture
def client(storage: Storage) -> Generator[TestClient, None, None]:
    """Create a test client with storage override."""
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token('user-1')}"}


@pytest.fixture
def other_user_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token('user-2')}"}


@pytest.fixture
def test_note(client: TestClient, auth_headers: Dict[str, str]) -> dict:
    """Create a note through the API."""
    response = client.post(
        "/api/notes",
        json={"title": "Grocery list", "content": "Milk, eggs and bread"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    return response.json()["note"]
