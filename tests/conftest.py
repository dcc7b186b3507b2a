from datetime import date

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from volunteer_portal.api.vol_login import get_today
from volunteer_portal.config import Settings
from volunteer_portal.database import get_db
from volunteer_portal.main import create_app
from volunteer_portal.models.base import Base
from volunteer_portal.models.volunteer_account import VolunteerAccount

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# sha256("password")
PASSWORD_DIGEST = "5e884898da28047151d0e56f8dc6292773603d0d6aabbdd62a11ef721d1542d8"
TODAY = date(2024, 3, 1)


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        DATABASE_URL=TEST_DATABASE_URL,
        AUTO_CREATE_TABLES=False,
        SESSION_SECRET="test-secret",
        SESSION_BACKEND="signed",
    )


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def add_volunteer(db_engine):
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def _add(user_id="U1", email="a@b.com", first_name="Jane", last_name="Doe",
                   password=PASSWORD_DIGEST, status="Active", last_used=None):
        async with session_factory() as session:
            account = VolunteerAccount(
                user_id=user_id,
                email=email,
                first_name=first_name,
                last_name=last_name,
                password=password,
                create_date=date(2024, 1, 1),
                last_used=last_used,
                status=status,
            )
            session.add(account)
            await session.commit()
            return account

    return _add


@pytest.fixture
def app(db_engine, settings):
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app(settings)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_today] = lambda: TODAY
    return app


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
