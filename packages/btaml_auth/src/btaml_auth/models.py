import secrets
from datetime import datetime, timezone

from btaml_db.models import Model, TimestampMixin
from sqlalchemy import Boolean, DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column

from .hasher import hash_password, needs_rehash, verify_password

USER_TABLE_NAME = "users"


class User(Model, TimestampMixin):
    __tablename__ = USER_TABLE_NAME

    username: Mapped[str] = mapped_column(
        String(150), unique=True, index=True, nullable=False
    )
    email: Mapped[str | None] = mapped_column(
        String(255), unique=True, index=True, nullable=True
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_staff: Mapped[bool] = mapped_column(Boolean, default=False)
    is_superuser: Mapped[bool] = mapped_column(Boolean, default=False)
    last_login: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def display_name(self) -> str:
        return self.username

    def check_password(self, raw_password: str) -> bool:
        """
        Verify `raw_password` against the stored Argon2 hash.

        A match against a hash made with outdated parameters replaces the
        hash in memory; the caller's next commit stores it.
        """
        if not verify_password(self.password_hash, raw_password):
            return False
        if needs_rehash(self.password_hash):
            self.password_hash = hash_password(raw_password)
        return True

    def set_password(self, raw_password: str) -> None:
        self.password_hash = hash_password(raw_password)

    def __str__(self) -> str:
        return self.username

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id}, username='{self.username}')>"


class UserSession(Model):
    """A server-side login session; only its random key travels in the cookie."""

    __tablename__ = "user_sessions"

    session_key: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        index=True,
        default=lambda: secrets.token_urlsafe(32),
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey(f"{USER_TABLE_NAME}.id", ondelete="CASCADE"),
        index=True,
    )
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    @property
    def is_expired(self) -> bool:
        """Check if the session has passed its expiry time."""
        now = datetime.now(timezone.utc)
        if self.expires_at.tzinfo:
            return now > self.expires_at
        # SQLite hands back naive datetimes; they were stored as UTC
        return now > self.expires_at.replace(tzinfo=timezone.utc)
