from pathlib import Path

from btaml_core.config import BtamlSettings


class PortalSettings(BtamlSettings):
    """Settings of the BTAML Universe portal, read from the environment and `.env`."""

    SITE_NAME: str = "BTAML Universe"

    # --- Media ---
    MEDIA_ROOT: Path = Path("media")
    MEDIA_URL: str = "/media"
    MAX_IMAGE_BYTES: int = 5 * 1024 * 1024
    MAX_AVATAR_BYTES: int = 2 * 1024 * 1024

    # --- Admin ---
    ADMIN_SESSION_EXPIRE_SECONDS: int = 24 * 60 * 60
    ADMIN_USERNAME: str = "admin"
    ADMIN_EMAIL: str = "admin@btamluniverse.com"
    ADMIN_PASSWORD: str = ""

    # --- Newsletter mail ---
    GMAIL_USER: str = ""
    GMAIL_APP_PASSWORD: str = ""
    NEWSLETTER_ADMIN_EMAIL: str = ""
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 465

    # --- Content ---
    SEARCH_RESULT_LIMIT: int = 100
    SEARCH_MAX_CONDITIONS: int = 20
    LISTING_PAGE_SIZE: int = 12

    @property
    def newsletter_recipient(self) -> str:
        return self.NEWSLETTER_ADMIN_EMAIL or self.GMAIL_USER
