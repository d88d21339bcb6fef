"""Pytest configuration and fixtures."""

import asyncio
import os
from typing import Generator

import pytest

# Set test environment variables before importing the app
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from fastapi.testclient import TestClient  # noqa: E402

from streamhub.config import Settings  # noqa: E402
from streamhub.main import create_app  # noqa: E402
from streamhub.services.auth_service import AuthService  # noqa: E402
from streamhub.services.memory_user_store import InMemoryUserStore  # noqa: E402
from streamhub.services.password_service import PasswordHasher  # noqa: E402
from streamhub.services.token_service import TokenIssuer  # noqa: E402
from streamhub.services.user_service import UserService  # noqa: E402

ACCESS_SECRET = "test-access-secret-for-unit-tests"
REFRESH_SECRET = "test-refresh-secret-for-unit-tests"
START_TIME = 1_700_000_000.0


class FakeClock:
    """Controllable time source for token issuance and expiry checks."""

    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def settings() -> Settings:
    """Settings with deterministic secrets and the cheapest bcrypt cost."""
    return Settings(
        environment="test",
        storage_backend="memory",
        jwt_access_secret=ACCESS_SECRET,
        jwt_refresh_secret=REFRESH_SECRET,
        bcrypt_rounds=4,
        _env_file=None,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def hasher(settings) -> PasswordHasher:
    return PasswordHasher(settings)


@pytest.fixture
def token_issuer(settings, clock) -> TokenIssuer:
    return TokenIssuer(settings, clock=clock)


@pytest.fixture
def auth_service(store, hasher, token_issuer, settings) -> AuthService:
    return AuthService(store, hasher, token_issuer, settings)


@pytest.fixture
def user_service(store, hasher) -> UserService:
    return UserService(store, hasher)


@pytest.fixture
def app(settings, store, clock):
    """Application wired to the in-memory store and fake clock."""
    return create_app(settings=settings, store=store, clock=clock)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """TestClient with the app lifespan running."""
    with TestClient(app) as tc:
        yield tc


@pytest.fixture
def register_user(client):
    """Register through the API and return the response body."""

    def _register(name="Ann", email="ann@x.com", password="secret1") -> dict:
        response = client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def make_admin(store):
    """Flip the admin flag of an already-registered user (sync tests)."""

    async def _promote(email: str) -> None:
        user = await store.find_by_email(email)
        await store.update(user.id, is_admin=True)

    def _make_admin(email: str) -> None:
        asyncio.run(_promote(email))

    return _make_admin
