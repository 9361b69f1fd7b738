"""Shared test fixtures for backend tests."""

import os

# Cheap hashes for the suite; must be set before the app's settings load
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from typing import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import practice_authz.models  # noqa: E402,F401
from practice_authz.database import Base  # noqa: E402
from practice_authz.main import app  # noqa: E402
from practice_authz.api.deps import get_db  # noqa: E402
from practice_authz.auth.jwt import create_access_token  # noqa: E402
from practice_authz.auth.roles import Role  # noqa: E402
from practice_authz.bootstrap.seed_gate import BootstrapState, SeedGate  # noqa: E402
from practice_authz.models import User  # noqa: E402
from practice_authz.seed.dev_seed import make_dev_seed  # noqa: E402
from practice_authz.services.user_store import UserStore  # noqa: E402


@pytest_asyncio.fixture
async def engine():
    """A private in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def file_session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """A file-backed database so concurrent sessions use separate connections."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory creating accounts directly in the store."""
    async def _make(email: str, role: Role = Role.USER, name: str | None = None,
                    password: str = "Secret123!") -> User:
        return await UserStore(db_session).create_user(
            email, password, name or email.split("@")[0], role
        )
    return _make


@pytest_asyncio.fixture
async def admin_user(make_user) -> User:
    return await make_user("admin@firm.com", Role.ADMIN, "Ada Admin")


@pytest_asyncio.fixture
async def regular_user(make_user) -> User:
    return await make_user("paula@firm.com", Role.USER, "Paula Paralegal")


def make_auth_header(user: User) -> dict:
    """Create an Authorization header with a valid JWT."""
    token = create_access_token(user.id, user.email, user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_header():
    return make_auth_header


def _override_db(session: AsyncSession):
    """Create a dependency override for get_db."""
    async def _get_db():
        yield session
    return _get_db


@pytest_asyncio.fixture
async def anon_client(db_session: AsyncSession, session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with no authentication, bound to the test database."""
    app.dependency_overrides[get_db] = _override_db(db_session)
    # Bootstrap state holds asyncio primitives; each test loop gets its own
    app.state.bootstrap = BootstrapState(
        seed_gate=SeedGate(make_dev_seed(session_factory), name="dev-seed")
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def admin_client(anon_client: AsyncClient, admin_user: User) -> AsyncClient:
    """HTTP client authenticated as admin."""
    anon_client.headers.update(make_auth_header(admin_user))
    return anon_client


@pytest_asyncio.fixture
async def user_client(anon_client: AsyncClient, regular_user: User) -> AsyncClient:
    """HTTP client authenticated as a regular (non-admin) user."""
    anon_client.headers.update(make_auth_header(regular_user))
    return anon_client
