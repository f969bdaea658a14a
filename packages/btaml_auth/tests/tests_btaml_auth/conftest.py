import pytest
import pytest_asyncio
from btaml_auth import SessionAuthenticationBackend, User
from btaml_db import db as db_module
from btaml_db.models import Model
from sqlalchemy.ext.asyncio import AsyncSession

DATABASE_URL = "sqlite+aiosqlite:///:memory:"  # in-memory DB for tests


@pytest_asyncio.fixture(scope="function")
async def init_test_db():
    """Initialize a fresh in-memory database for each test."""
    db_module.init_db(DATABASE_URL, echo=False)
    await db_module.create_tables(Model.metadata)

    yield

    await db_module.close_db()


@pytest_asyncio.fixture()
async def db_session(init_test_db):  # noqa: ARG001
    """Provide a database session for tests."""
    async for session in db_module.get_db():
        yield session


async def _make_user(db: AsyncSession, **fields) -> User:
    password = fields.pop("password", "password123")
    user = User(**fields)
    user.set_password(password)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture(scope="function")
async def test_user(db_session: AsyncSession):
    """An active, non-staff user."""
    return await _make_user(
        db_session,
        username="reader@example.com",
        email="reader@example.com",
        is_active=True,
        is_staff=False,
    )


@pytest_asyncio.fixture(scope="function")
async def staff_user(db_session: AsyncSession):
    """An active staff user."""
    return await _make_user(
        db_session,
        username="admin",
        email="admin@example.com",
        is_active=True,
        is_staff=True,
    )


@pytest_asyncio.fixture(scope="function")
async def inactive_user(db_session: AsyncSession):
    return await _make_user(
        db_session,
        username="inactive",
        email="inactive@example.com",
        is_active=False,
    )


@pytest.fixture
def backend():
    return SessionAuthenticationBackend(cookie_name="session", expire_seconds=3600)
