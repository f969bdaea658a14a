import pytest_asyncio
from btaml_db import db as db_module
from btaml_db.models import Model

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
