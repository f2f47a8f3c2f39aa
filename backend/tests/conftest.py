"""Shared fixtures: in-memory database, header-based identity, payment env."""
import os
from typing import Annotated

# Must be set before the app (and its engine) is imported
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_DISABLED"] = "1"
os.environ["APP_ENV"] = "test"

import pytest
from fastapi import Header
from fastapi.testclient import TestClient

from app.core.auth import get_bearer_token, get_current_user
from app.database import Base, SessionLocal, engine
from app.gallery_seed import seed_gallery_prompts
from app.main import app
from app.services.supabase_auth import AuthUser

ADMIN_EMAIL = "admin@garuda-ai.id"
MIDTRANS_SERVER_KEY = "SB-Mid-server-test"


def override_get_current_user(
    authorization: Annotated[str | None, Header()] = None,
) -> AuthUser:
    """Resolve ``Bearer <user-id>`` without calling Supabase."""
    token = get_bearer_token(authorization)
    email = ADMIN_EMAIL if token == "admin" else f"{token}@example.com"
    return AuthUser(id=token, email=email)


app.dependency_overrides[get_current_user] = override_get_current_user


class FakeResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {user_id}"}


@pytest.fixture(scope="function")
def client():
    """Create test client with fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    seed_gallery_prompts(db)
    db.close()
    yield TestClient(app)
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(client):
    """Session on the same database the client uses."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def admin_env(monkeypatch):
    monkeypatch.setenv("ADMIN_EMAIL", ADMIN_EMAIL)


@pytest.fixture
def midtrans_env(monkeypatch):
    """Configure Midtrans as the active provider with sandbox keys."""
    monkeypatch.setenv("PAYMENT_PROVIDER", "midtrans")
    monkeypatch.setenv("MIDTRANS_ENABLED", "true")
    monkeypatch.setenv("MIDTRANS_SERVER_KEY", MIDTRANS_SERVER_KEY)
    monkeypatch.setenv("MIDTRANS_CLIENT_KEY", "SB-Mid-client-test")
    monkeypatch.delenv("MIDTRANS_IS_PRODUCTION", raising=False)


@pytest.fixture
def xendit_env(monkeypatch):
    monkeypatch.setenv("PAYMENT_PROVIDER", "xendit")
    monkeypatch.setenv("XENDIT_ENABLED", "true")
    monkeypatch.setenv("XENDIT_SECRET_KEY", "xnd_development_test")
    monkeypatch.setenv("XENDIT_WEBHOOK_TOKEN", "callback-token-123")
