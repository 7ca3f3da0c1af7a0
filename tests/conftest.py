"""Pytest configuration and fixtures for test suite."""

import asyncio
import os
import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Set test environment BEFORE any other imports
os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("AUTH_SEED_ADMINS", "false")

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

TEST_JWT_SECRET = "test-secret-key-for-marketplace-admin-tests-0123456789"

MEMORY_URL = "sqlite+aiosqlite:///:memory:"


def _reset_db_modules():
    """Reset database module globals to ensure clean state."""
    import database.async_engine as module
    module._async_engine = None
    module._async_session_factory = None


def _clear_settings_caches():
    from config.database import get_database_settings
    from config.settings import get_auth_settings, get_settings

    get_database_settings.cache_clear()
    get_auth_settings.cache_clear()
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def reset_database_globals():
    """Reset database module globals and cached settings around each test."""
    _reset_db_modules()
    _clear_settings_caches()
    yield
    _reset_db_modules()
    _clear_settings_caches()


@pytest.fixture
def auth_settings():
    """Auth settings with a fixed signing key."""
    from config.settings import AuthSettings
    return AuthSettings(jwt_secret=TEST_JWT_SECRET)


@pytest.fixture
def mock_async_session():
    """Provide a mock async session for testing."""
    from unittest.mock import AsyncMock
    return AsyncMock()


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite engine with the schema created."""
    from config.database import DatabaseSettings
    from database.async_engine import create_engine
    from database.models import Base

    engine = create_engine(DatabaseSettings(url=MEMORY_URL))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Session bound to the in-memory engine."""
    from database.async_engine import get_session_factory

    async with get_session_factory(db_engine)() as session:
        yield session


@pytest.fixture
def make_user(db_session):
    """
    Factory for user rows.

    Usage:
        record = await make_user("u-1", role="admin", admin_role="user_manager")
    """
    from database.repositories.user_repository import UserRepository

    async def _make(user_id, role="investor", admin_role=None, permissions=(), **fields):
        fields.setdefault("email", f"{user_id}@example.com")
        fields.setdefault("name", user_id.replace("-", " ").title())
        return await UserRepository(db_session).create(
            id=user_id,
            role=role,
            admin_role=admin_role,
            permissions=list(permissions),
            **fields,
        )

    return _make


# =============================================================================
# API FIXTURES
# =============================================================================

# Users present in the file database used by the route tests
API_USERS = [
    {"id": "super-1", "email": "super@example.com", "name": "Sam Super",
     "role": "admin", "admin_role": "super_admin", "permissions": []},
    {"id": "content-1", "email": "content@example.com", "name": "Cora Content",
     "role": "admin", "admin_role": "content_moderator", "permissions": ["manage_users"]},
    {"id": "usermgr-1", "email": "usermgr@example.com", "name": "Uma Manager",
     "role": "admin", "admin_role": "user_manager", "permissions": []},
    {"id": "investor-1", "email": "investor@example.com", "name": "Ivan Investor",
     "role": "investor", "admin_role": None, "permissions": [], "city": "Lagos"},
    {"id": "owner-1", "email": "owner@example.com", "name": "Olga Owner",
     "role": "project_owner", "admin_role": None, "permissions": [], "city": "Lagos"},
]


async def _seed_file_database(url: str, users) -> None:
    from config.database import DatabaseSettings
    from database.async_engine import create_engine, get_session_factory
    from database.models import Base
    from database.repositories.user_repository import UserRepository

    engine = create_engine(DatabaseSettings(url=url))
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        async with get_session_factory(engine)() as session:
            repo = UserRepository(session)
            for user in users:
                await repo.create(**user)
            await session.commit()
    finally:
        await engine.dispose()


@pytest.fixture
def db_url(tmp_path, monkeypatch):
    """File-backed SQLite database seeded with API_USERS, wired in through DB_URL."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'admin.db'}"
    monkeypatch.setenv("DB_URL", url)
    _clear_settings_caches()
    asyncio.run(_seed_file_database(url, API_USERS))
    return url


@pytest.fixture
def app_factory(db_url, auth_settings):
    """Build apps against the seeded database."""
    from web.app import create_app

    def _factory(**overrides):
        overrides.setdefault("auth_settings", auth_settings)
        return create_app(**overrides)

    return _factory


@pytest.fixture
def client(app_factory):
    """TestClient running the full lifespan."""
    from fastapi.testclient import TestClient

    with TestClient(app_factory()) as test_client:
        yield test_client


@pytest.fixture
def token_for(auth_settings):
    """
    Mint bearer headers for a seeded user.

    Usage:
        client.get("/admin/roles/admin-users", headers=token_for("super-1"))
    """
    from rbac.jwt import create_access_token

    by_id = {user["id"]: user for user in API_USERS}

    def _headers(user_id, role=None, **kwargs):
        user = by_id.get(user_id, {"email": f"{user_id}@example.com", "role": "investor"})
        token = create_access_token(
            user_id,
            user["email"],
            role or user["role"],
            settings=kwargs.pop("settings", auth_settings),
            **kwargs,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
