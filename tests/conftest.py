"""Shared test fixtures — async DB, client, auth helpers, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Set test JWT_SECRET before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")

import uuid
from datetime import datetime, time, timedelta, timezone
from typing import AsyncGenerator, Sequence

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from mawaqit.common.constants import RoleName
from mawaqit.config import settings
from mawaqit.database import Base, get_db
from mawaqit.main import create_app

# Import ALL model modules so every table is registered on Base.metadata
import mawaqit.adhkar.models  # noqa: F401
import mawaqit.hadiths.models  # noqa: F401
import mawaqit.prayer_times.models  # noqa: F401
import mawaqit.sections.models  # noqa: F401
import mawaqit.special_topics.models  # noqa: F401
import mawaqit.users.models  # noqa: F401

# ── SQLite compat: compile PG-specific types ────────────────────────

from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine.sync_engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    """SQLite only enforces FOREIGN KEY constraints when asked to."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

def _now() -> datetime:
    return datetime.now(timezone.utc)


def _make_section(*, name: str = "Tripoli") -> dict:
    return dict(name=name, created_at=_now(), updated_at=_now())


def _make_prayer_time(
    *,
    section_id: int,
    day: int = 15,
    month: int = 3,
) -> dict:
    return dict(
        day=day,
        month=month,
        fajr_first_time=time(4, 50),
        fajr_second_time=time(5, 5),
        sunrise_time=time(6, 25),
        dhuhr_time=time(12, 30),
        asr_time=time(15, 55),
        maghrib_time=time(18, 35),
        isha_time=time(19, 50),
        section_id=section_id,
        created_at=_now(),
        updated_at=_now(),
    )


def _make_hadith(
    *,
    text: str = "Actions are judged by intentions.",
    source: str = "Bukhari",
    topic: str = "intentions",
) -> dict:
    return dict(text=text, source=source, topic=topic, created_at=_now(), updated_at=_now())


def _make_category(*, name: str = "Morning", description: str | None = "After Fajr") -> dict:
    return dict(name=name, description=description, created_at=_now(), updated_at=_now())


def _make_dhikr(
    *,
    category_id: int,
    text: str = "SubhanAllah",
    source: str = "Muslim",
    repeat: int = 33,
) -> dict:
    return dict(
        text=text,
        source=source,
        repeat=repeat,
        category_id=category_id,
        created_at=_now(),
        updated_at=_now(),
    )


def _make_special_topic(
    *,
    topic: str = "Ramadan",
    content: str = "The month of fasting.",
) -> dict:
    return dict(topic=topic, content=content, created_at=_now(), updated_at=_now())


def _make_user(
    *,
    name: str = "Test Admin",
    phone_number: str = "0910000000",
) -> dict:
    return dict(
        id=uuid.uuid4(),
        name=name,
        phone_number=phone_number,
        password_hash="not-a-real-hash",
        created_at=_now(),
        updated_at=_now(),
    )


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    user_id: uuid.UUID,
    roles: Sequence[RoleName] = (RoleName.user,),
    expired: bool = False,
) -> str:
    """Generate a JWT access token for testing."""
    if expired:
        exp = _now() - timedelta(hours=1)
    else:
        exp = _now() + timedelta(hours=1)
    payload = {
        "sub": str(user_id),
        "roles": [r.value for r in roles],
        "exp": exp,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture
async def test_user(db) -> dict:
    """Insert a user and commit so the app session sees it."""
    from mawaqit.users.models import User

    data = _make_user()
    db.add(User(**data))
    await db.commit()
    return data


@pytest.fixture
async def admin_headers(test_user) -> dict[str, str]:
    token = create_access_token(test_user["id"], roles=(RoleName.admin,))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def user_headers(test_user) -> dict[str, str]:
    token = create_access_token(test_user["id"], roles=(RoleName.user,))
    return {"Authorization": f"Bearer {token}"}
