import os
import tempfile
import time
import uuid
from pathlib import Path

import pytest

# Point the app at a throwaway database and dev-mode auth before it is imported.
_DB_DIR = Path(tempfile.mkdtemp(prefix="project_matcher_tests_"))
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR / 'test.db'}"
os.environ["ENV"] = "dev"
os.environ["JWT_SECRET"] = "test-secret"
for _name in ("COGNITO_REGION", "AWS_REGION", "COGNITO_USER_POOL_ID", "COGNITO_CLIENT_ID", "GEMINI_API_KEY", "SYNC_API_KEY"):
    os.environ.pop(_name, None)

import jwt  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from project_matcher.main import app  # noqa: E402

_client = TestClient(app)


def make_token(sub, expires_in=3600, secret="test-secret", **claims):
    payload = {"exp": int(time.time()) + expires_in, **claims}
    if sub is not None:
        payload["sub"] = sub
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(sub):
    return {"Authorization": f"Bearer {make_token(sub)}"}


@pytest.fixture(scope="session", autouse=True)
def reset_db():
    """Ensure a fresh SQLite database file for the test session."""
    yield
    db_path = _DB_DIR / "test.db"
    if db_path.exists():
        try:
            db_path.unlink()
        except OSError:
            pass


@pytest.fixture
def new_user():
    """Factory that syncs a fresh user and returns its JSON plus auth headers."""
    def _create(**overrides):
        suffix = uuid.uuid4().hex[:10]
        payload = {
            "cognito_sub": f"sub-{suffix}",
            "email": f"user-{suffix}@example.com",
            "first_name": "Test",
            "last_name": "User",
            "preferred_username": f"user{suffix}",
        }
        payload.update(overrides)
        r = _client.post("/users/sync", json=payload)
        assert r.status_code == 200, r.text
        body = r.json()
        body["headers"] = auth_headers(payload["cognito_sub"])
        return body
    return _create


@pytest.fixture
def new_project():
    """Factory that creates a project owned by `owner` (a `new_user` result)."""
    def _create(owner, **overrides):
        payload = {
            "title": f"Project {uuid.uuid4().hex[:8]}",
            "description": "A project used by the test-suite.",
            "required_skills": ["Python"],
            "tags": ["Web App"],
        }
        payload.update(overrides)
        r = _client.post("/projects", json=payload, headers=owner["headers"])
        assert r.status_code == 201, r.text
        return r.json()
    return _create


@pytest.fixture
def add_member():
    """Add `member` to `project` with `role` through the owner's account."""
    def _add(owner, project, member, role="Member"):
        r = _client.post(
            f"/projects/{project['id']}/members",
            json={"user_id": member["id"], "role": role},
            headers=owner["headers"],
        )
        assert r.status_code == 201, r.text
        return r.json()
    return _add
