import io
import re

import pytest
from btaml_auth import User
from btaml_html.forms import ValidationError
from btaml_portal.models import Profile
from btaml_portal.profiles import (
    change_password,
    generate_custom_uid,
    get_or_create_profile,
    update_profile,
    upload_avatar,
    validate_new_password,
)
from btaml_portal.uploads import ImageValidationError, MediaStorage
from starlette.datastructures import Headers, UploadFile

from .factories import PNG_BYTES

UID_RE = re.compile(r"BTAML-[0-9A-Z]{6}-[0-9A-Z]{4}")


def test_custom_uid_format():
    assert UID_RE.fullmatch(generate_custom_uid())


class TestGetOrCreateProfile:
    async def test_creates_once(self, db_session, reader):
        profile = await get_or_create_profile(db_session, reader)
        assert profile.id == reader.id
        assert profile.email == "reader@btaml.test"
        assert UID_RE.fullmatch(profile.custom_uid)

        again = await get_or_create_profile(db_session, reader)
        assert again.custom_uid == profile.custom_uid
        assert await Profile.objects.all().count(db_session) == 1

    async def test_missing_uid_is_assigned(self, db_session, reader):
        await Profile.objects.create(db_session, id=reader.id, email=reader.email)
        profile = await get_or_create_profile(db_session, reader)
        assert UID_RE.fullmatch(profile.custom_uid)


class TestUpdateProfile:
    async def test_update(self, db_session, reader):
        profile = await get_or_create_profile(db_session, reader)
        updated = await update_profile(
            db_session, profile, full_name="  Amina Njoroge ", phone="0700", bio="Hi"
        )
        assert updated.full_name == "Amina Njoroge"
        assert updated.phone == "0700"
        assert updated.location == ""

    async def test_full_name_required(self, db_session, reader):
        profile = await get_or_create_profile(db_session, reader)
        with pytest.raises(ValidationError, match="Full name is required"):
            await update_profile(db_session, profile, full_name="   ")


class TestAvatar:
    async def test_upload(self, db_session, reader, tmp_path):
        profile = await get_or_create_profile(db_session, reader)
        upload = UploadFile(
            file=io.BytesIO(PNG_BYTES),
            size=len(PNG_BYTES),
            filename="me.png",
            headers=Headers({"content-type": "image/png"}),
        )
        storage = MediaStorage(tmp_path, "/media")
        updated = await upload_avatar(
            db_session, profile, upload, storage=storage, max_bytes=2 * 1024 * 1024
        )
        assert re.fullmatch(rf"/media/profiles/{reader.id}/\d+\.png", updated.avatar_url)

    async def test_too_large(self, db_session, reader, tmp_path):
        profile = await get_or_create_profile(db_session, reader)
        data = b"\x00" * 4096
        upload = UploadFile(
            file=io.BytesIO(data),
            size=len(data),
            filename="me.png",
            headers=Headers({"content-type": "image/png"}),
        )
        with pytest.raises(ImageValidationError):
            await upload_avatar(
                db_session,
                profile,
                upload,
                storage=MediaStorage(tmp_path, "/media"),
                max_bytes=1024,
            )


class TestPasswords:
    def test_validation(self):
        with pytest.raises(ValidationError, match="New passwords do not match"):
            validate_new_password("secret1", "secret2")
        with pytest.raises(ValidationError, match="at least 6 characters"):
            validate_new_password("abc", "abc")
        validate_new_password("secret1", "secret1")

    async def test_change_password(self, db_session, reader):
        await change_password(db_session, reader, "new-secret", "new-secret")
        stored = await User.objects.get_by_pk(db_session, reader.id)
        await db_session.refresh(stored)
        assert stored.check_password("new-secret")
