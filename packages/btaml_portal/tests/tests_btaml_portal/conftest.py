from typing import AsyncGenerator

import pytest
import pytest_asyncio
from btaml_auth import User
from btaml_db import db as db_module
from btaml_db.models import Model
from btaml_portal.main import create_app
from btaml_portal.settings import PortalSettings
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from .factories import InMemoryMailer

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


@pytest.fixture
def settings(tmp_path) -> PortalSettings:
    return PortalSettings(
        _env_file=None,
        DEBUG=True,
        SECRET_KEY="secret-key-for-testing",
        DATABASE_URL=DATABASE_URL,
        MEDIA_ROOT=tmp_path / "media",
        GMAIL_USER="news@btaml.test",
        GMAIL_APP_PASSWORD="app-password",
        NEWSLETTER_ADMIN_EMAIL="owner@btaml.test",
        ADMIN_PASSWORD="password123",
    )


@pytest.fixture
def mailer() -> InMemoryMailer:
    return InMemoryMailer()


@pytest.fixture
def app(settings: PortalSettings, mailer: InMemoryMailer, init_test_db) -> FastAPI:  # noqa: ARG001
    """The portal app over the test database; the lifespan is not run."""
    return create_app(settings, mailer=mailer)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def _make_user(db: AsyncSession, **fields) -> User:
    password = fields.pop("password", "password123")
    user = User(**fields)
    user.set_password(password)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture(scope="function")
async def staff_user(db_session: AsyncSession) -> User:
    return await _make_user(
        db_session,
        username="admin",
        email="admin@btaml.test",
        is_active=True,
        is_staff=True,
    )


@pytest_asyncio.fixture(scope="function")
async def reader(db_session: AsyncSession) -> User:
    """An active, non-staff user who signs in with their email."""
    return await _make_user(
        db_session,
        username="reader@btaml.test",
        email="reader@btaml.test",
        is_active=True,
        is_staff=False,
    )
