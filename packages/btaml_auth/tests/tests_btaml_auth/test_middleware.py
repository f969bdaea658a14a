from typing import AsyncGenerator

import pytest_asyncio
from btaml_auth import (
    SessionAuthenticationBackend,
    SessionAuthenticationMiddleware,
    User,
)
from fastapi import Depends, FastAPI, Request
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.middleware.sessions import SessionMiddleware


@pytest_asyncio.fixture
async def middleware_app(db_session: AsyncSession) -> FastAPI:
    """An app whose session factory is resolved lazily by the middleware."""
    app = FastAPI()
    backend = SessionAuthenticationBackend()

    async def get_test_db():
        yield db_session

    app.add_middleware(SessionAuthenticationMiddleware, backend=backend)
    app.add_middleware(SessionMiddleware, secret_key="secret-key-for-testing")

    @app.post("/login")
    async def login(request: Request, db: AsyncSession = Depends(get_test_db)):
        payload = await request.json()
        result = await backend.login(
            request, db, username=payload["username"], password=payload["password"]
        )
        return {"success": result.success}

    @app.post("/logout")
    async def logout(request: Request, db: AsyncSession = Depends(get_test_db)):
        return {"success": await backend.logout(request, db)}

    @app.get("/me")
    def me(request: Request) -> dict:
        user = request.state.user
        return {
            "username": getattr(user, "username", None),
            "authenticated": user.is_authenticated,
        }

    return app


@pytest_asyncio.fixture
async def client(middleware_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=middleware_app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


class TestSessionMiddleware:
    async def test_anonymous_without_cookie(self, client: AsyncClient):
        """Requests without a session cookie get an AnonymousUser."""
        response = await client.get("/me")
        assert response.status_code == 200
        assert response.json() == {"username": "", "authenticated": False}

    async def test_login_round_trip(self, client: AsyncClient, staff_user: User):
        """The signed cookie carries the session key across requests."""
        response = await client.post(
            "/login", json={"username": "admin", "password": "password123"}
        )
        assert response.json() == {"success": True}

        me = await client.get("/me")
        assert me.json() == {"username": "admin", "authenticated": True}

        await client.post("/logout")
        after = await client.get("/me")
        assert after.json()["authenticated"] is False

    async def test_tampered_cookie_is_anonymous(self, client: AsyncClient):
        """A cookie not signed by the server is ignored."""
        client.cookies.set("session", "forged-value")
        response = await client.get("/me")
        assert response.json()["authenticated"] is False
