import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Request
from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import User, UserSession
from .schemas import AnonymousUser, AuthenticationResult

logger = logging.getLogger(__name__)

DEFAULT_SESSION_COOKIE_NAME = "session"
DEFAULT_SESSION_EXPIRE_SECONDS = 14 * 24 * 60 * 60  # two weeks


def _failed(message: str, error: str) -> AuthenticationResult:
    return AuthenticationResult(
        success=False, user=AnonymousUser(), message=message, errors=[error]
    )


def client_info(request: Request) -> tuple[str | None, str | None]:
    """Client IP (first ``X-Forwarded-For`` hop when proxied) and user agent."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    else:
        ip_address = request.client.host if request.client else None
    return ip_address, request.headers.get("user-agent")


class AuthenticationBackend(ABC):
    @abstractmethod
    async def authenticate(self, *arg: Any, **kwargs: Any) -> AuthenticationResult: ...

    @abstractmethod
    async def login(self, *arg: Any, **kwargs: Any) -> AuthenticationResult: ...

    @abstractmethod
    async def logout(self, *arg: Any, **kwargs: Any) -> Any: ...


class SessionAuthenticationBackend(AuthenticationBackend):
    """
    Database-backed sessions.

    The browser only ever holds an opaque session key, stored under
    `cookie_name` inside Starlette's signed session cookie. Every request
    resolves that key against `UserSession` rows, so a session can be
    revoked or expired server-side.
    """

    def __init__(
        self,
        *,
        cookie_name: str = DEFAULT_SESSION_COOKIE_NAME,
        expire_seconds: int = DEFAULT_SESSION_EXPIRE_SECONDS,
    ):
        self.cookie_name = cookie_name
        self.expire_seconds = expire_seconds

    async def authenticate(
        self, db: AsyncSession, session_token: str
    ) -> AuthenticationResult:
        """Resolve a session key to its user; never returns None."""
        if not session_token:
            return _failed("Invalid Session", "Missing session key")

        row = (
            await db.execute(
                select(UserSession, User)
                .join(User, UserSession.user_id == User.id)
                .where(UserSession.session_key == session_token)
            )
        ).first()
        if row is None:
            return _failed("Invalid Session", "Session key does not exist in database")

        user_session, user = row
        if not user.is_active:
            return _failed("Account Inactive", "User account is disabled")
        if user_session.is_expired:
            return _failed("Session Expired", "The session has expired")
        return AuthenticationResult(
            success=True,
            user=user,
            message="Authenticated",
            extra={"session": user_session},
        )

    async def _find_user(
        self, db: AsyncSession, username: str | None, email: str | None
    ) -> User | None:
        matches = []
        if username:
            matches.append(func.lower(User.username) == username.lower())
        if email:
            matches.append(func.lower(User.email) == email.lower())
        if not matches:
            return None
        return await db.scalar(select(User).where(or_(*matches)).limit(1))

    async def login(
        self,
        request: Request,
        db: AsyncSession,
        *,
        username: str | None = None,
        email: str | None = None,
        password: str,
        staff_only: bool = False,
        expire_seconds: int | None = None,
    ) -> AuthenticationResult:
        """
        Check credentials and open a new session.

        Usernames and emails are matched case-insensitively. With
        `staff_only` the user must also be a staff member.
        """
        if "session" not in request.scope:
            return AuthenticationResult(
                success=False,
                user=AnonymousUser(),
                message="Configuration Error",
                errors=["SessionMiddleware not installed"],
            )

        user = await self._find_user(db, username, email) if password else None
        if user is None or not user.check_password(password):
            return _failed("Login Failed", "Invalid credentials")
        if not user.is_active:
            return _failed("Login Failed", "Account is inactive")
        if staff_only and not user.is_staff:
            return _failed("Login Failed", "Access denied. Admin privileges required.")

        now = datetime.now(timezone.utc)
        ip_address, user_agent = client_info(request)
        user_session = UserSession(
            user_id=user.id,
            ip_address=ip_address,
            user_agent=user_agent,
            expires_at=now + timedelta(seconds=expire_seconds or self.expire_seconds),
        )
        # Also stores a password hash upgraded by check_password
        user.last_login = now
        db.add(user_session)
        try:
            await db.commit()
            await db.refresh(user_session)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.exception("Could not open a session for user %s", user.id)
            return _failed("Login Failed", str(e))

        request.session[self.cookie_name] = user_session.session_key
        logger.info("User %s logged in", user.username)
        return AuthenticationResult(
            success=True,
            user=user,
            message="Login Successful",
            extra={"session_key": user_session.session_key},
        )

    async def logout(self, request: Request, db: AsyncSession) -> bool:
        """Delete the server-side session and clear the cookie payload."""
        if "session" not in request.scope:
            return False
        session_key = request.session.get(self.cookie_name)
        request.session.clear()
        if not session_key:
            return False
        await db.execute(
            delete(UserSession).where(UserSession.session_key == session_key)
        )
        await db.commit()
        return True
