"""Shared fixtures: a throwaway sqlite database per test and an API client."""
import uuid
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hotel_ledger.core.security import create_access_token
from hotel_ledger.database import build_engine, init_db, get_db
from hotel_ledger.main import app
from hotel_ledger.models.user import User, UserRole


@pytest.fixture
async def engine(tmp_path):
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    await init_db(bind=test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


async def make_user(session_factory, role: str) -> User:
    async with session_factory() as session:
        user = User(
            email=f"{role}-{uuid.uuid4().hex[:8]}@grandhotel.in",
            password_hash="not-a-real-hash",
            name=role.title(),
            role=role,
        )
        session.add(user)
        await session.commit()
        return user


@pytest.fixture
async def accountant(session_factory) -> User:
    return await make_user(session_factory, UserRole.ACCOUNTANT.value)


@pytest.fixture
async def manager(session_factory) -> User:
    return await make_user(session_factory, UserRole.MANAGER.value)


@pytest.fixture
async def staff(session_factory) -> User:
    return await make_user(session_factory, UserRole.STAFF.value)


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(subject=user.id)}"}


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
