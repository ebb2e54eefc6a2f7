import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from report_app.auth.dependencies import get_current_user
from report_app.auth.models import User
from report_app.auth.schemas import CurrentUser
from report_app.auth.security import hash_password
from report_app.db.session import Base, enable_sqlite_foreign_keys, get_db
from report_app.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "secret123"


@pytest.fixture()
async def engine():
    """Fresh in-memory database per test, foreign keys enforced."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(test_engine)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture()
async def db_session(engine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for a test and override FastAPI dependency."""
    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.clear()


@pytest.fixture()
async def user(db_session: AsyncSession) -> User:
    u = User(email="reporter@example.com", name="Reporter", password_hash=hash_password(TEST_PASSWORD))
    db_session.add(u)
    await db_session.commit()
    return u


@pytest.fixture()
async def anon_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Client without an authenticated user."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
async def client(db_session: AsyncSession, user: User) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app, authenticated as `user`."""
    # Resolved now: a rollback inside a request expires the ORM instance
    current = CurrentUser(id=user.id, email=user.email, name=user.name)

    async def override_current_user() -> CurrentUser:
        return current

    app.dependency_overrides[get_current_user] = override_current_user
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
