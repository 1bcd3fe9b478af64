"""
This file contains shared fixtures and configuration for the test suite.

Pytest will automatically discover and use the fixtures defined in this file.

The application is pointed at a throwaway SQLite database before any app
module is imported; tables are created once per session. Tests isolate
themselves by syncing users with fresh uids rather than truncating tables.
"""

import asyncio
import os
import tempfile
import uuid
from collections.abc import Callable, Generator
from pathlib import Path

_tmp_dir = tempfile.mkdtemp(prefix="academic_buddy_tests_")
os.environ["ACADEMIC_BUDDY_DATABASE_URL"] = (
    f"sqlite+aiosqlite:///{Path(_tmp_dir) / 'test.db'}"
)
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["TRUST_IDENTITY_HEADER"] = "false"
os.environ.setdefault("LOG_TO_FILE", "false")

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.db import init_db  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def create_tables() -> None:
    asyncio.run(init_db())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    """
    Create a new application instance for the test session.
    """
    from main import create_app

    return create_app()


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """
    Fixture to get a test client for making API requests.
    The TestClient handles the application's lifespan events (startup/shutdown).
    """
    with TestClient(app) as c:
        yield c


@pytest.fixture
def sync_user(client: TestClient) -> Callable[..., tuple[dict, dict]]:
    """
    Sync a fresh identity provider account and return (user, auth headers).
    """

    def _sync(**overrides) -> tuple[dict, dict]:
        uid = overrides.pop("firebase_uid", f"uid-{uuid.uuid4().hex}")
        payload = {
            "firebase_uid": uid,
            "email": f"{uid}@example.edu",
            "name": "Test Student",
            **overrides,
        }
        resp = client.post("/auth/sync", json=payload)
        assert resp.status_code == 200, resp.text
        body = resp.json()
        headers = {"Authorization": f"Bearer {body['access_token']}"}
        return body["user"], headers

    return _sync


@pytest.fixture
def auth_headers(sync_user) -> dict:
    _, headers = sync_user()
    return headers
