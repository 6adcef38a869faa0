import os

# Settings are cached on first import, so the test environment goes first
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("BREVO_API_KEY", "")
os.environ.setdefault("N8N_API_KEY", "")

from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from jobfinder import models  # noqa: F401
from jobfinder.auth import create_access_token, hash_password
from jobfinder.database import Base, get_db, utcnow
from jobfinder.models import JobMatch, JobPreference, User
from jobfinder.services.duplicates import generate_job_hash
from jobfinder.services.retention import reset_retention_config


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db(db_engine):
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_engine):
    from jobfinder.main import app

    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def fresh_retention_config():
    reset_retention_config()
    yield
    reset_retention_config()


async def create_user(db, email: str, first_name: str, last_name: str = "Doe") -> User:
    user = User(
        email=email,
        password_hash=hash_password("correct-horse-battery"),
        first_name=first_name,
        last_name=last_name,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def user(db):
    return await create_user(db, "jane@example.com", "Jane")


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id, user.email)}"}


async def create_preference(db, user, **overrides) -> JobPreference:
    fields = dict(
        user_id=user.id,
        profile_name="Software Engineering",
        job_title="Software Engineer",
        keywords=["React", "Node.js"],
        location={"city": "San Francisco", "state": "CA", "country": "USA", "remote": False},
        contract_types=["permanent"],
        salary_range={"min": 100000, "max": 160000, "currency": "USD"},
        day_rate_range=None,
        experience_levels=["senior"],
        company_sizes=["medium"],
        is_active=True,
    )
    fields.update(overrides)
    preference = JobPreference(**fields)
    db.add(preference)
    await db.commit()
    await db.refresh(preference)
    return preference


async def create_match(db, preference, days_ago: int = 0, **overrides) -> JobMatch:
    fields = dict(
        preference_id=preference.id,
        job_title="Senior Software Engineer",
        company="Tech Corp",
        location="San Francisco, CA",
        salary="$120,000 - $150,000",
        contract_type="permanent",
        job_url="https://example.com/job/123",
        source_website="example.com",
        job_description="React and Node.js",
        match_score=90,
        found_at=utcnow() - timedelta(days=days_ago),
        application_status="not_applied",
        alert_sent=False,
    )
    fields.update(overrides)
    fields.setdefault(
        "job_hash", generate_job_hash(fields["job_url"], fields["job_title"], fields["company"])
    )
    match = JobMatch(**fields)
    db.add(match)
    await db.commit()
    await db.refresh(match)
    return match


@pytest_asyncio.fixture
async def preference(db, user):
    return await create_preference(db, user)


@pytest_asyncio.fixture
async def other_preference(db):
    bob = await create_user(db, "bob@example.com", "Bob", "Smith")
    return await create_preference(db, bob, profile_name="Bob's Search")
