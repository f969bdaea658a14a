import logging
import secrets
import string
import time

from btaml_auth.models import User
from btaml_html.forms import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from .forms import MIN_PASSWORD_LENGTH
from .models import Profile
from .uploads import PROFILES_BUCKET, MediaStorage, avatar_object_name

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_uppercase


def _to_base36(number: int) -> str:
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits)) or "0"


def generate_custom_uid() -> str:
    """
    A public member id such as ``BTAML-K3J9X0-A2B4``.

    The middle part is the tail of the current time in milliseconds,
    the last part is random.
    """
    timestamp = _to_base36(time.time_ns() // 1_000_000)[-6:]
    random_part = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"BTAML-{timestamp}-{random_part}"


async def get_or_create_profile(db: AsyncSession, user: User) -> Profile:
    """
    Return the profile of `user`, creating it on first use.

    A profile without a custom UID gets one; an existing UID is never
    replaced.
    """
    profile = await Profile.objects.filter(id=user.id).first(db)
    if profile is None:
        profile = await Profile.objects.create(
            db,
            id=user.id,
            email=user.email,
            custom_uid=generate_custom_uid(),
        )
        logger.info("Created profile for user %s", user.id)
        return profile

    if not profile.custom_uid:
        profile = await Profile.objects.update(
            db, profile.id, custom_uid=generate_custom_uid()
        )
        logger.info("Assigned custom UID to profile %s", profile.id)
    return profile


async def update_profile(
    db: AsyncSession,
    profile: Profile,
    *,
    full_name: str,
    phone: str = "",
    location: str = "",
    bio: str = "",
) -> Profile:
    full_name = full_name.strip()
    if not full_name:
        raise ValidationError("Full name is required")
    return await Profile.objects.update(
        db,
        profile.id,
        full_name=full_name,
        phone=phone.strip(),
        location=location.strip(),
        bio=bio.strip(),
    )


async def upload_avatar(
    db: AsyncSession,
    profile: Profile,
    upload: UploadFile,
    *,
    storage: MediaStorage,
    max_bytes: int,
) -> Profile:
    """Store `upload` in the profiles bucket and point the profile at it."""
    url = await storage.save_upload(
        upload,
        bucket=PROFILES_BUCKET,
        name=avatar_object_name(profile.id, upload.filename),
        max_bytes=max_bytes,
    )
    return await Profile.objects.update(db, profile.id, avatar_url=url)


def validate_new_password(new_password: str, confirm_password: str) -> None:
    """
    Raises:
        ValidationError: The passwords differ or the password is too short.
    """
    if new_password != confirm_password:
        raise ValidationError("New passwords do not match")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )


async def change_password(
    db: AsyncSession,
    user: User,
    new_password: str,
    confirm_password: str,
) -> None:
    validate_new_password(new_password, confirm_password)
    # The request user is detached from this session
    stored = await User.objects.get_by_pk(db, user.id)
    stored.set_password(new_password)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Could not change the password of user %s", user.id)
        msg = f"Database error while changing password: {e}"
        raise RuntimeError(msg) from e
    logger.info("User %s changed their password", user.id)
