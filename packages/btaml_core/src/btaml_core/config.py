"""
Foundation settings shared by every BTAML package.
"""

from pathlib import Path
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BtamlSettings(BaseSettings):
    """
    Core settings for all BTAML packages.
    Applications (like btaml_portal) inherit from this and add their own keys.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
    )

    # --- Basic Environment ---
    DEBUG: bool = True
    SECRET_KEY: str = ""
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # --- Database Core ---
    DATABASE_URL: str = "sqlite+aiosqlite:///btaml.db"
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Path | None = None

    # --- Sessions ---
    SESSION_COOKIE_NAME: str = "session"
    # Two weeks
    SESSION_EXPIRE_SECONDS: int = 14 * 24 * 60 * 60

    @model_validator(mode="after")
    def validate_security(self) -> "BtamlSettings":
        """Ensures production doesn't ship without a secret key."""
        if not self.DEBUG and not self.SECRET_KEY:
            raise ValueError("SECRET_KEY is mandatory in production mode.")
        return self

    def is_development(self) -> bool:
        return self.DEBUG or self.ENVIRONMENT == "development"

    def engine_options(self) -> dict[str, int | bool]:
        """Keyword arguments for `btaml_db.init_db`."""
        return {
            "echo": self.DB_ECHO,
            "pool_size": self.DB_POOL_SIZE,
            "max_overflow": self.DB_MAX_OVERFLOW,
        }
