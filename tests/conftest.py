"""Shared test fixtures for the auth test suite."""

import threading
from datetime import datetime
from pathlib import Path
from unittest.mock import Mock
from uuid import UUID

import pytest
from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

from auth.config import AuthConfig
from auth.hasher import Hasher
from auth.security_logger import SecurityLogger
from auth.types import AccessToken, RememberToken, User
from utils.request_context import RequestContext, clear_request_context, request_context
from utils.timezone import now_utc


# =============================================================================
# TEST USER CONSTANTS
# =============================================================================

TEST_USER_ID = UUID("00000000-0000-0000-0000-000000000001")
TEST_USER_EMAIL = "jsmith@example.com"
TEST_USER_USERNAME = "jsmith"
TEST_USER_PASSWORD = "correct horse battery staple"

TEST_USER_B_ID = UUID("00000000-0000-0000-0000-000000000002")


# =============================================================================
# IN-MEMORY STORES
# =============================================================================


class InMemoryUserStore:
    """UserStore backed by a dict."""

    def __init__(self):
        self.users: dict[UUID, User] = {}

    def find_by_login_field(self, field: str, value: str) -> User | None:
        for user in self.users.values():
            stored = user.login_value(field)
            if stored is None:
                continue
            if field == "email" and stored.lower() == value.lower():
                return user
            if stored == value:
                return user
        return None

    def find_by_id(self, user_id: UUID) -> User | None:
        return self.users.get(user_id)

    def save(self, user: User) -> None:
        self.users[user.id] = user


class InMemoryRememberTokenStore:
    """RememberTokenStore whose rotate is a locked compare-and-swap."""

    def __init__(self):
        self.tokens: dict[str, RememberToken] = {}
        self._lock = threading.Lock()
        self.find_barrier: threading.Barrier | None = None

    def find_remember_token(self, selector: str) -> RememberToken | None:
        with self._lock:
            token = self.tokens.get(selector)
        if self.find_barrier is not None:
            self.find_barrier.wait(timeout=5)
        return token

    def insert_remember_token(self, token: RememberToken) -> None:
        with self._lock:
            self.tokens[token.selector] = token

    def rotate_remember_token(
        self,
        selector: str,
        expected_hash: str,
        new_hash: str,
        new_expires_at: datetime,
    ) -> bool:
        with self._lock:
            current = self.tokens.get(selector)
            if current is None or current.hashed_validator != expected_hash:
                return False
            self.tokens[selector] = current.model_copy(update={
                "hashed_validator": new_hash,
                "expires_at": new_expires_at,
            })
            return True

    def delete_remember_token(self, selector: str) -> None:
        with self._lock:
            self.tokens.pop(selector, None)

    def revoke_remember_tokens(self, user_id: UUID) -> int:
        with self._lock:
            doomed = [s for s, t in self.tokens.items() if t.user_id == user_id]
            for selector in doomed:
                del self.tokens[selector]
            return len(doomed)

    def for_user(self, user_id: UUID) -> list[RememberToken]:
        return [t for t in self.tokens.values() if t.user_id == user_id]


class InMemoryAccessTokenStore:
    """AccessTokenStore backed by a dict keyed on token hash."""

    def __init__(self):
        self.tokens: dict[str, AccessToken] = {}

    def find_access_token(self, token_hash: str) -> AccessToken | None:
        return self.tokens.get(token_hash)

    def insert_access_token(self, token: AccessToken) -> None:
        self.tokens[token.token_hash] = token

    def _replace(self, token_id: UUID, **updates) -> bool:
        for key, token in self.tokens.items():
            if token.id == token_id:
                self.tokens[key] = token.model_copy(update=updates)
                return True
        return False

    def touch_access_token(self, token_id: UUID, used_at: datetime) -> None:
        self._replace(token_id, last_used_at=used_at)

    def revoke_access_token(self, token_id: UUID, revoked_at: datetime) -> bool:
        for token in self.tokens.values():
            if token.id == token_id and token.revoked_at is None:
                return self._replace(token_id, revoked_at=revoked_at)
        return False

    def list_access_tokens(self, user_id: UUID) -> list[AccessToken]:
        return [t for t in self.tokens.values() if t.user_id == user_id]


class InMemorySessionStore:
    """SessionStore backed by a dict."""

    def __init__(self):
        self.data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def clear(self, key: str) -> None:
        self.data.pop(key, None)


# =============================================================================
# CONFIG / HASHER FIXTURES
# =============================================================================


@pytest.fixture
def config() -> AuthConfig:
    """Cheapest legal hashing so tests stay fast."""
    return AuthConfig(hash_cost=4)


@pytest.fixture
def hasher(config) -> Hasher:
    return Hasher.from_config(config)


@pytest.fixture
def security_logger():
    """Mock SecurityLogger - no database in unit tests."""
    return Mock(spec=SecurityLogger)


# =============================================================================
# STORE FIXTURES
# =============================================================================


@pytest.fixture
def users() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def remember_tokens() -> InMemoryRememberTokenStore:
    return InMemoryRememberTokenStore()


@pytest.fixture
def access_tokens() -> InMemoryAccessTokenStore:
    return InMemoryAccessTokenStore()


@pytest.fixture
def make_user(users, hasher):
    """Create and store a user with a real password hash."""

    def _make(
        user_id: UUID = TEST_USER_ID,
        email: str | None = TEST_USER_EMAIL,
        username: str | None = TEST_USER_USERNAME,
        password: str = TEST_USER_PASSWORD,
        is_active: bool = True,
        password_hash: str | None = None,
        **extra,
    ) -> User:
        user = User(
            id=user_id,
            email=email,
            username=username,
            password_hash=password_hash or hasher.hash(password),
            is_active=is_active,
            created_at=now_utc(),
            **extra,
        )
        users.save(user)
        return user

    return _make


@pytest.fixture
def test_user(make_user) -> User:
    return make_user()


# =============================================================================
# REQUEST CONTEXT FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def reset_request_context():
    """Ensure no request context leaks between tests."""
    clear_request_context()
    yield
    clear_request_context()


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def ctx(session_store):
    """An active request context for the duration of the test."""
    context = RequestContext(
        session=session_store,
        ip_address="192.168.1.1",
        user_agent="TestBrowser/1.0",
    )
    with request_context(context):
        yield context
