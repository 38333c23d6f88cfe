"""
Shared fixtures: an app wired to in-memory stores so HTTP tests need no
database or SMTP server.
"""

from __future__ import annotations

import uuid
from typing import Dict, Optional
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from auth.dependencies import get_mailer, get_session_binder, get_user_store
from auth.exceptions import DuplicateEmailError
from auth.store import check_required_fields, normalize_email
from config.settings import Settings
from database.models import DEFAULT_AVATAR_URL, User
from main import create_app

JWT_SECRET = "test-jwt-secret-that-is-long-enough-for-hs256"
SESSION_SECRET = "test-session-secret-that-is-long-enough"


class InMemoryUserStore:
    """Same contract as ``auth.store.UserStore``; unique on e-mail."""

    def __init__(self) -> None:
        self.users: Dict[str, User] = {}

    async def create(self, full_name, email, password_hash, avatar_url=None) -> User:
        check_required_fields(full_name, email, password_hash)
        key = normalize_email(email)
        if key in self.users:
            raise DuplicateEmailError()
        user = User(
            user_id=uuid.uuid4(),
            full_name=full_name.strip(),
            email=key,
            password_hash=password_hash,
            avatar_url=avatar_url or DEFAULT_AVATAR_URL,
        )
        self.users[key] = user
        return user

    async def find_by_email(self, email) -> Optional[User]:
        return self.users.get(normalize_email(email))

    async def find_by_id(self, user_id) -> Optional[User]:
        for user in self.users.values():
            if str(user.user_id) == str(user_id):
                return user
        return None


class InMemorySessionBinder:
    def __init__(self) -> None:
        self.tokens: Dict[str, Optional[str]] = {}

    async def set_token(self, session_id: str, token: str) -> None:
        self.tokens[session_id] = token

    async def get_token(self, session_id: str) -> Optional[str]:
        return self.tokens.get(session_id)

    async def clear_token(self, session_id: str) -> None:
        if session_id in self.tokens:
            self.tokens[session_id] = None

    async def discard(self, session_id: str) -> None:
        self.tokens.pop(session_id, None)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        jwt_secret=JWT_SECRET,
        session_secret=SESSION_SECRET,
        create_tables_on_startup=False,
    )


@pytest.fixture
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def session_binder() -> InMemorySessionBinder:
    return InMemorySessionBinder()


@pytest.fixture
def mailer() -> MagicMock:
    fake = MagicMock()
    fake.send_verification_email.return_value = True
    return fake


@pytest.fixture
def app(settings, user_store, session_binder, mailer):
    application = create_app(settings)
    application.dependency_overrides[get_user_store] = lambda: user_store
    application.dependency_overrides[get_session_binder] = lambda: session_binder
    application.dependency_overrides[get_mailer] = lambda: mailer
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


ALICE = {"namaLengkap": "Alice", "email": "a@x.com", "password": "pw1"}


@pytest.fixture
def registered(client) -> dict:
    resp = client.post("/register", json=ALICE)
    assert resp.status_code == 201
    return ALICE


@pytest.fixture
def logged_in(client, registered) -> str:
    resp = client.post(
        "/login", json={"email": registered["email"], "password": registered["password"]},
    )
    assert resp.status_code == 200
    return resp.json()["data"]["token"]
