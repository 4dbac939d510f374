from __future__ import annotations
import os

# Must be set before app.config is imported anywhere
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("NOTIFICATIONS_ASYNC", "0")

import uuid
from datetime import datetime
import httpx
import pytest
from httpx import AsyncClient
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from app.db import Base, get_session
import app.models.user  # noqa: F401  register tables
import app.models.challenge  # noqa: F401
import app.models.notification  # noqa: F401
from app.models.challenge import Challenge, Participation
from app.models.user import User
from app.main import app


@pytest.fixture
async def test_engine():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """API client whose requests run against the in-memory test database."""
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    async def _make(username: str | None = None) -> User:
        uname = username or f"u_{uuid.uuid4().hex[:8]}"
        user = User(email=f"{uname}@example.com", username=uname, password_hash="not-a-real-hash")
        db_session.add(user)
        await db_session.commit()
        return user
    return _make


@pytest.fixture
def make_challenge(db_session):
    async def _make(
        creator: User,
        *,
        open: bool = False,
        sponsored: bool = False,
        participations_count: int = 0,
        submission_ends_at: datetime | None = None,
        invitation_token: str | None = None,
    ) -> Challenge:
        ch = Challenge(
            creator_id=creator.id,
            title="Pushups every day",
            invitation_token=invitation_token or uuid.uuid4().hex[:10],
            open=open,
            sponsored=sponsored,
            participations_count=participations_count,
            submission_ends_at=submission_ends_at,
            status="waiting",
        )
        db_session.add(ch)
        await db_session.commit()
        return ch
    return _make


@pytest.fixture
def register_and_login(client):
    """Register a fresh user through the API and return (user_json, auth headers)."""
    async def _go(prefix: str = "user"):
        uname = f"{prefix}_{uuid.uuid4().hex[:6]}"
        email = f"{uname}@example.com"
        r = await client.post("/auth/register", json={"email": email, "username": uname, "password": "supersecret"})
        assert r.status_code == 201, r.text
        tokens = (await client.post("/auth/login", json={"email": email, "password": "supersecret"})).json()
        return r.json(), {"Authorization": f"Bearer {tokens['access']}"}
    return _go


@pytest.fixture
def count_participations(db_session):
    async def _count(challenge_id) -> int:
        return int(await db_session.scalar(
            select(func.count()).select_from(Participation).where(Participation.challenge_id == challenge_id)
        ) or 0)
    return _count
