"""Service test fixtures — async DB, user factory, FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database with the full schema
      (including the pending-pair partial unique index)
    - get_db dependency overridden to use the test DB
    - db_manager patched so the readiness check sees the test engine

Design Decisions:
    - SQLite in-memory: fast, no external dependency; the constraints the
      relationship engine relies on (unique, partial unique, check) all exist there
    - Tokens minted with the same settings the app verifies with
"""

import itertools

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

import ember.models  # noqa: F401
from ember.config import get_settings
from ember.db.base import Base
from ember.infrastructure.database import get_db, DatabaseSessionManager
from ember.infrastructure.security import create_access_token, hash_password
from ember.models.user import User
import ember.infrastructure.database as db_module
from ember.main import app


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def make_user(test_db):
    """Factory: insert a committed user. Password is always 'password123'."""
    counter = itertools.count(1)

    async def _make(username: str | None = None, **fields) -> User:
        name = username or f"user{next(counter)}"
        user = User(
            username=name,
            email=fields.pop("email", f"{name}@example.com"),
            password_hash=hash_password("password123", rounds=4),
            **fields,
        )
        test_db.add(user)
        await test_db.commit()
        return user

    return _make


@pytest.fixture
def auth_headers():
    """Build an Authorization header for a user, signed like the app expects."""
    settings = get_settings()

    def _headers(user: User) -> dict[str, str]:
        token = create_access_token(
            user.id, settings.jwt_secret_key, settings.jwt_algorithm,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
