"""
Shared pytest fixtures.

Every test gets a fresh in-memory SQLite database, an HTTP client bound to
the FastAPI app, and a seeded organization with one user per role.
"""

import os

# Settings are read at import time, so the environment goes first
os.environ["ENV"] = "test"
os.environ["POSTGRES_DSN"] = "sqlite+aiosqlite:///:memory:"
os.environ["DB_MANAGE"] = "none"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["OUTBOX_RELAY_ENABLED"] = "false"
os.environ["EVENT_BUS_PROVIDER"] = "noop"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["PUBLIC_BASE_URL"] = "https://book.acme.io"

from dataclasses import dataclass, field
from typing import AsyncGenerator, Callable

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.base import Base
from app.core.db import get_session, import_models
from app.core.security import create_access_token, hash_password
from app.main import app
from app.modules.admin.models import Organization, User

PASSWORD = "correct-horse-battery"
ROLES = ("super_admin", "admin", "manager", "team_member")


@dataclass
class Tenant:
    org: Organization
    users: dict[str, User] = field(default_factory=dict)

    def user(self, role: str) -> User:
        return self.users[role]


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    import_models()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# ============================================================================
# APP FIXTURES
# ============================================================================


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client talking to the app in-process; startup hooks are not run."""

    async def _session_override():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _session_override
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


async def _seed_org(session_factory, name: str, domain: str, roles=ROLES) -> Tenant:
    async with session_factory() as session:
        org = Organization(name=name, domain=domain, max_users=50, time_zone="UTC")
        session.add(org)
        await session.flush()
        tenant = Tenant(org=org)
        for role in roles:
            user = User(
                org_id=org.id,
                username=role,
                email=f"{role}@{domain}",
                full_name=role.replace("_", " ").title(),
                password_hash=hash_password(PASSWORD),
                role=role,
            )
            session.add(user)
            tenant.users[role] = user
        await session.commit()
    return tenant


@pytest_asyncio.fixture
async def tenant(session_factory) -> Tenant:
    return await _seed_org(session_factory, "Acme Networks", "acme.io")


@pytest_asyncio.fixture
async def other_tenant(session_factory) -> Tenant:
    return await _seed_org(session_factory, "Globex", "globex.io", roles=("admin",))


def _headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.org_id, user.role)}"}


@pytest.fixture
def auth(tenant) -> Callable[[str], dict[str, str]]:
    """auth("manager") -> bearer headers for the seeded user with that role."""
    return lambda role: _headers(tenant.user(role))


@pytest.fixture
def other_auth(other_tenant) -> dict[str, str]:
    return _headers(other_tenant.user("admin"))
