from typing import AsyncGenerator

import pytest_asyncio
from btaml_html.views import DetailView, ListView
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from .models import HTMLTestNote


class NoteDetail(DetailView[HTMLTestNote]):
    model = HTMLTestNote
    template_name = "note_detail.html"

    def get_queryset(self):
        return self.model.objects.filter(published=True)


class NoteList(ListView[HTMLTestNote]):
    model = HTMLTestNote
    template_name = "note_list.html"
    paginate_by = 2
    ordering = ["-id"]


@pytest_asyncio.fixture
async def http(app: FastAPI, db_session) -> AsyncGenerator[AsyncClient, None]:
    for title, published in [("one", True), ("two", True), ("three", False)]:
        db_session.add(HTMLTestNote(title=title, published=published))
    await db_session.commit()

    app.add_api_route("/notes", NoteList.as_view())
    app.add_api_route("/notes/{pk}", NoteDetail.as_view())
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


class TestDetailView:
    async def test_renders_object(self, http: AsyncClient):
        """The object is exposed under the lowercased model name."""
        response = await http.get("/notes/1")
        assert response.status_code == 200
        assert response.text == "Note: one"

    async def test_queryset_restricts_lookup(self, http: AsyncClient):
        """Objects outside get_queryset() are 404."""
        assert (await http.get("/notes/3")).status_code == 404

    async def test_missing_and_malformed_pk(self, http: AsyncClient):
        """Unknown or non-numeric keys are 404."""
        assert (await http.get("/notes/99")).status_code == 404
        assert (await http.get("/notes/abc")).status_code == 404


class TestListView:
    async def test_first_page(self, http: AsyncClient):
        """Ordering and page size apply; metadata reports the total."""
        response = await http.get("/notes")
        assert response.text == "[three][two] total=3 next=True"

    async def test_second_page(self, http: AsyncClient):
        """The page query parameter selects the offset."""
        response = await http.get("/notes?page=2")
        assert response.text == "[one] total=3 next=False"
