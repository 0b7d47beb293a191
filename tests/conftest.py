"""
Pytest configuration and shared fixtures for the MyStep test suite.
"""

import os
from datetime import datetime, timedelta, timezone

import jwt
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# Set test environment before importing the app
os.environ["MYSTEP_ENVIRONMENT"] = "test"
os.environ["MYSTEP_DB_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["MYSTEP_JWT_PUBLIC_KEY"] = "test-secret"
os.environ["MYSTEP_JWT_ALGORITHM"] = "HS256"
# Disable rate limiting for tests
os.environ["MYSTEP_RATE_LIMIT_REQUESTS"] = "999999"

from mystep.config import get_settings  # noqa: E402
from mystep.db.base import Base, make_engine  # noqa: E402
import mystep.models  # noqa: E402,F401

settings = get_settings()


class FakeRedis:
    def __init__(self):
        self.store = {}

    async def get(self, key: str):
        return self.store.get(key)

    async def set(self, key: str, value, ex=None):
        self.store[key] = value.encode() if isinstance(value, str) else value

    async def delete(self, *keys: str):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed


class FakeClock:
    """Deterministic clock; every call moves one second forward."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest_asyncio.fixture
async def test_engine():
    """Create a fresh in-memory database per test."""
    engine = make_engine(settings)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine):
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def test_user_id():
    """Test user ID for authentication."""
    return "550e8400-e29b-41d4-a716-446655440000"


def _make_token(user_id, secret="test-secret", **overrides):
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "exp": now + timedelta(hours=1),
        "iat": now,
    }
    payload.update(overrides)
    payload = {k: v for k, v in payload.items() if v is not None}
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def make_token():
    """Factory for signed test tokens; pass a claim as None to omit it."""
    return _make_token


@pytest.fixture
def test_jwt_token(test_user_id):
    """Create a test JWT token."""
    return _make_token(test_user_id)


@pytest.fixture
def app(fake_redis):
    """Create test app instance backed by in-memory SQLite and FakeRedis."""
    from mystep.cache import get_redis
    from mystep.server import create_app

    test_app = create_app()

    async def _fake_redis():
        return fake_redis

    test_app.dependency_overrides[get_redis] = _fake_redis
    return test_app


@pytest.fixture
def client(app):
    """Create a test client for the FastAPI app."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_client(client, test_jwt_token):
    """Create an authenticated test client."""
    client.headers.update({"Authorization": f"Bearer {test_jwt_token}"})
    return client


@pytest.fixture
def sample_path_data():
    """Learning path request body as sent by the web client."""
    return {
        "jobTitle": "Backend Developer",
        "targetRole": "Senior Backend Developer",
        "experience": "intermediate",
        "existingSkills": ["Python", "SQL"],
        "skills": [
            {"skill_name": "Docker", "learning_topics": ["images", "compose"]},
            "Kubernetes",
        ],
        "estimatedCompletionTime": "3-6 months",
        "apiResponse": {"model": "planner-v1", "skills": ["Docker", "Kubernetes"]},
    }
