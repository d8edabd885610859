"""Test infrastructure — in-memory SQLite DB, session and httpx client fixtures.

Every test gets a fresh schema on an aiosqlite in-memory database shared
through a StaticPool. The app's get_db dependency is overridden to yield
the test session, so fixtures and requests see the same data.
"""

import os

os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("AXIOM_API_TOKEN", "")
os.environ.setdefault("SMTP_USER", "")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "")
os.environ.setdefault("REDIS_URL", "")

from collections.abc import AsyncGenerator
from datetime import date, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api.deps import login_rate_limiter
from app.services.security_monitoring_service import security_monitoring_service
from app.database import Base, get_db
from app.main import app
from app.models import *  # noqa: F401,F403 — register all models with metadata
from app.models.user import User
from app.utils.cache import cache
from app.utils.jwt import create_access_token
from app.utils.password import hash_password
from app.utils.rbac import Role

TEST_DATABASE_URL = "sqlite+aiosqlite://"

PASSWORD = "Passw0rd!"


# ---------------------------------------------------------------------------
# Engine, session, client
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database with the full schema."""
    eng = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(eng.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture(autouse=True)
async def reset_state() -> AsyncGenerator[None, None]:
    """Process-wide cache, rate limiter and IP block list start empty for each test."""
    await cache.clear()
    cache.reset_stats()
    login_rate_limiter.reset()
    security_monitoring_service.clear_blocked_ips()
    yield
    await cache.clear()


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI test client — the DB session is overridden."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Users per role
# ---------------------------------------------------------------------------
async def create_user(db: AsyncSession, username: str, *roles: Role, is_active: bool = True) -> User:
    user = User(
        username=username,
        email=f"{username}@tbba.test",
        password_hash=hash_password(PASSWORD),
        first_name=username.capitalize(),
        is_active=is_active,
        role_links=[],
    )
    for role in roles:
        user.add_role(role)
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def super_admin(db: AsyncSession) -> User:
    return await create_user(db, "root", Role.SUPER_ADMIN)


@pytest_asyncio.fixture
async def admin_user(db: AsyncSession) -> User:
    return await create_user(db, "admin", Role.ADMIN)


@pytest_asyncio.fixture
async def editor_user(db: AsyncSession) -> User:
    return await create_user(db, "editor", Role.EDITOR)


@pytest_asyncio.fixture
async def moderator_user(db: AsyncSession) -> User:
    return await create_user(db, "moderator", Role.MODERATOR)


@pytest_asyncio.fixture
async def normal_user(db: AsyncSession) -> User:
    return await create_user(db, "member", Role.USER)


def make_token(user: User) -> str:
    """Access token for a test user."""
    return create_access_token({
        "sub": str(user.id),
        "username": user.username,
        "email": user.email,
        "roles": sorted(r.value for r in user.roles),
    })


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def super_admin_headers(super_admin: User) -> dict[str, str]:
    return auth_header(make_token(super_admin))


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    return auth_header(make_token(admin_user))


@pytest.fixture
def editor_headers(editor_user: User) -> dict[str, str]:
    return auth_header(make_token(editor_user))


@pytest.fixture
def moderator_headers(moderator_user: User) -> dict[str, str]:
    return auth_header(make_token(moderator_user))


@pytest.fixture
def user_headers(normal_user: User) -> dict[str, str]:
    return auth_header(make_token(normal_user))


# ---------------------------------------------------------------------------
# Domain data helpers
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def district(db: AsyncSession):
    from app.models.district import District

    d = District(name="Hyderabad", code="HYD", headquarters="Hyderabad", is_active=True)
    db.add(d)
    await db.flush()
    await db.refresh(d)
    return d


def future(days: int) -> str:
    return (date.today() + timedelta(days=days)).isoformat()
