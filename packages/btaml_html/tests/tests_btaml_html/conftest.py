import pytest
import pytest_asyncio
from btaml_auth import AnonymousUser
from btaml_db import db as db_module
from btaml_db.models import Model
from btaml_html.template_manager import TemplateManager
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

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
def manager(tmp_path):
    """A TemplateManager over a handful of explicit templates."""
    tpl_dir = tmp_path / "templates"
    tpl_dir.mkdir(parents=True, exist_ok=True)

    (tpl_dir / "hello.html").write_text("Hello {{ name }}")
    (tpl_dir / "note_detail.html").write_text("Note: {{ htmltestnote.title }}")
    (tpl_dir / "note_list.html").write_text(
        "{% for note in object_list %}[{{ note.title }}]{% endfor %}"
        " total={{ page_obj.total_count }} next={{ page_obj.has_next }}"
    )
    (tpl_dir / "form.html").write_text(
        '{% from "btaml_html/field.html" import render_field %}'
        "{% for field in form.fields %}{{ render_field(field) }}{% endfor %}"
        "{% for e in form.non_field_errors %}!{{ e }}{% endfor %}"
    )

    return TemplateManager(project_root=tmp_path)


@pytest.fixture
def app(manager):
    """A FastAPI app with the manager attached to state."""
    app = FastAPI()
    app.state.template_manager = manager
    app.state.test_user = AnonymousUser()

    @app.middleware("http")
    async def set_user_middleware(request: Request, call_next):
        request.state.user = app.state.test_user
        return await call_next(request)

    return app


@pytest.fixture
def client(app):
    return TestClient(app)
