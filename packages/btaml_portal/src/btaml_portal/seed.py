"""
Create the admin account from the settings.

    ADMIN_PASSWORD=... btaml-seed-admin
"""

import asyncio
import logging
import sys

from btaml_auth import User
from btaml_core.logging import setup_logging
from btaml_db import db as db_module
from btaml_db.models import Model

from .settings import PortalSettings

logger = logging.getLogger(__name__)


async def seed_admin(settings: PortalSettings) -> User:
    """
    Create the staff superuser unless an account with its username exists.

    Uses the engine already initialised with `init_db` when there is one.
    """
    if not settings.ADMIN_PASSWORD:
        msg = "ADMIN_PASSWORD must be set to create the admin account."
        raise RuntimeError(msg)

    owns_engine = not db_module.is_initialized()
    if owns_engine:
        db_module.init_db(settings.DATABASE_URL, **settings.engine_options())
    try:
        await db_module.create_tables(Model.metadata)
        factory = db_module.get_session_factory()
        async with factory() as session:
            username = settings.ADMIN_USERNAME.lower()
            existing = await User.objects.filter(username=username).first(session)
            if existing:
                logger.info("User %r already exists (id=%s)", username, existing.id)
                return existing

            user = User(
                username=username,
                email=settings.ADMIN_EMAIL,
                is_active=True,
                is_staff=True,
                is_superuser=True,
            )
            user.set_password(settings.ADMIN_PASSWORD)
            session.add(user)
            await session.commit()
            await session.refresh(user)
            logger.info("Created admin %r (id=%s)", user.username, user.id)
            return user
    finally:
        if owns_engine:
            await db_module.close_db()


def main() -> None:
    settings = PortalSettings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    try:
        asyncio.run(seed_admin(settings))
    except RuntimeError as e:
        logger.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
