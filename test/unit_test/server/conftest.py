from datetime import date
from typing import AsyncGenerator, Awaitable, Callable, Dict, Optional
from unittest.mock import patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel.pool import StaticPool

from gclub.core.database import create_all
from gclub.core.database.entities.users import UserProfile
from gclub.core.database.repositories import SqlRepoBundle, build_sql_repos_from_session
from gclub.core.database.seed import seed_defaults
from gclub.core.models.domain import RoleName
from gclub.server.core.config import settings
from gclub.server.services.auth import CurrentUser, resolve_current_user

# Use in-memory SQLite for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

MemberFactory = Callable[..., Awaitable[Dict[str, str]]]


@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database with seeded roles, permissions and games."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all(engine)
    async with async_sessionmaker(engine, expire_on_commit=False)() as session:
        await seed_defaults(session)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, expire_on_commit=False)


@pytest_asyncio.fixture(name="session")
async def session_fixture(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a new session for each test."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def repos(session: AsyncSession) -> SqlRepoBundle:
    return build_sql_repos_from_session(session=session)


@pytest_asyncio.fixture(name="client")
async def client_fixture(session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with mocked lifespan and overridden dependencies."""
    from gclub.core.database import get_session
    from gclub.server.main import app

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_session] = get_session_override

    # Mock the lifespan to prevent database initialization during tests
    async def mock_lifespan(app):
        yield

    with patch("gclub.server.main.lifespan", mock_lifespan):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
            yield client

    app.dependency_overrides.clear()


def issue_token(user_id: str, email: Optional[str] = None) -> str:
    """Sign an access token the way the identity provider does."""
    claims = {"sub": user_id, "email": email or f"{user_id}@example.com"}
    if settings.auth.jwt_audience:
        claims["aud"] = settings.auth.jwt_audience
    return jwt.encode(claims, settings.auth.jwt_secret, algorithm=settings.auth.jwt_algorithm)


def auth_headers(user_id: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {issue_token(user_id)}"}


@pytest.fixture
def make_member(repos: SqlRepoBundle) -> MemberFactory:
    """Register a user (and by default a profile with ``role``); returns auth headers."""

    async def _make(
        user_id: str,
        role: RoleName = RoleName.USER,
        name: Optional[str] = None,
        with_profile: bool = True,
    ) -> Dict[str, str]:
        await repos.users.get_or_create(user_id, f"{user_id}@example.com")
        if with_profile:
            role_row = await repos.roles.get_by_name(role)
            await repos.profiles.create(
                UserProfile(
                    user_id=user_id,
                    name=name or user_id.title(),
                    birth_date=date(1995, 5, 17),
                    role_id=role_row.id,
                    terms_agreed=True,
                    privacy_agreed=True,
                )
            )
        await repos.session.commit()
        return auth_headers(user_id)

    return _make


@pytest.fixture
def current_user(repos: SqlRepoBundle) -> Callable[[str], Awaitable[CurrentUser]]:
    """Resolve a registered user the way the auth dependency does."""

    async def _resolve(user_id: str) -> CurrentUser:
        return await resolve_current_user(repos, {"sub": user_id})

    return _resolve
