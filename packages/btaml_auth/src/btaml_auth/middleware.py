import logging
from typing import Any, Final

from btaml_db import get_session_factory
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.types import ASGIApp, Receive, Scope, Send

from .backend import SessionAuthenticationBackend
from .models import User, UserSession
from .schemas import AnonymousUser

logger = logging.getLogger(__name__)


class SessionAuthenticationMiddleware:
    """
    Set ``request.state.user`` (and ``request.state.auth``, the matching
    `UserSession`) from the session key in the signed session cookie.

    Needs Starlette's `SessionMiddleware` around it, i.e. added to the app
    before `SessionMiddleware`. Lookup errors are logged and the request
    continues anonymously.
    """

    def __init__(
        self,
        app: ASGIApp,
        session_maker: async_sessionmaker[AsyncSession] | None = None,
        backend: SessionAuthenticationBackend | None = None,
    ):
        self.app: Final[ASGIApp] = app
        self.backend: Final[SessionAuthenticationBackend] = (
            backend or SessionAuthenticationBackend()
        )
        self._session_maker = session_maker

    @property
    def session_maker(self) -> async_sessionmaker[AsyncSession]:
        # The engine is usually created in the lifespan, after middleware setup
        return self._session_maker or get_session_factory()

    async def _resolve(self, token: str) -> tuple[User | None, UserSession | None]:
        async with self.session_maker() as db:
            result = await self.backend.authenticate(db, token)
            if not result.success:
                logger.debug("Session ...%s rejected: %s", token[-4:], result.message)
                return None, None
            user_session: Any = result.extra.get("session")
            # Detached rows stay readable after the session closes
            db.expunge_all()
            return result.user, user_session

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        request.state.user = AnonymousUser()
        request.state.auth = None

        token = None
        if "session" in scope:
            token = request.session.get(self.backend.cookie_name)
        if token:
            try:
                user, user_session = await self._resolve(token)
            except Exception:
                logger.exception("Could not resolve the session of this request")
            else:
                if user is not None:
                    request.state.user = user
                    request.state.auth = user_session

        await self.app(scope, receive, send)
