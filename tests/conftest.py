# =============================================================================
# KOALA WEB TOOLKIT - TEST CONFIGURATION
# =============================================================================
# File: tests/conftest.py
# Description: Pytest fixtures for routers, sessions, SQLite files and fakeredis
# =============================================================================

from typing import AsyncGenerator, Dict

import pytest
import pytest_asyncio
import fakeredis.aioredis
from sqlalchemy.ext.asyncio import AsyncEngine

from koala.auth import DefaultService, UserDetails, UserDetailsService
from koala.core import DBConfig, JwtConfig, SessionConfig, UsernameNotFoundError
from koala.core.security import sha256_password, Sha256PasswordStrategy
from koala.db import connect
from koala.session import CookieStore


# =============================================================================
# CONFIG FIXTURES
# =============================================================================

@pytest.fixture
def jwt_config() -> JwtConfig:
    return JwtConfig(exp=1, secret="jwt-test-secret")


@pytest.fixture
def session_config() -> SessionConfig:
    return SessionConfig(secret="session-test-secret")


@pytest.fixture
def cookie_store(session_config: SessionConfig) -> CookieStore:
    return CookieStore(session_config.secret)


# =============================================================================
# USER FIXTURES
# =============================================================================

class InMemoryUserDetailsService(UserDetailsService):
    """User details kept in a dictionary."""

    def __init__(self, users: Dict[str, UserDetails]):
        self.users = users

    def load_user_by_username(self, username: str) -> UserDetails:
        if username not in self.users:
            raise UsernameNotFoundError(f"Username {username} not found.")
        return self.users[username]


@pytest.fixture
def user_details_service() -> InMemoryUserDetailsService:
    return InMemoryUserDetailsService({
        "koala": UserDetails(username="koala", password=sha256_password("eucalyptus")),
        "sleepy": UserDetails(
            username="sleepy",
            password=sha256_password("eucalyptus"),
            is_active=False,
        ),
    })


@pytest.fixture
def auth_service(user_details_service: InMemoryUserDetailsService) -> DefaultService:
    return DefaultService(user_details_service, Sha256PasswordStrategy())


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture
def sqlite_config(tmp_path) -> DBConfig:
    """SQLite file database, fresh for each test."""
    return DBConfig(driver="sqlite", dsn=f"sqlite+aiosqlite:///{tmp_path / 'koala.db'}")


@pytest_asyncio.fixture
async def engine(sqlite_config: DBConfig) -> AsyncGenerator[AsyncEngine, None]:
    engine = await connect(sqlite_config)
    yield engine
    await engine.dispose()


# =============================================================================
# REDIS FIXTURES
# =============================================================================

@pytest_asyncio.fixture
async def redis_mock():
    """
    Create fake Redis for testing.

    Uses fakeredis to simulate Redis operations.
    """
    fake_redis = fakeredis.aioredis.FakeRedis()
    yield fake_redis
    await fake_redis.aclose()
