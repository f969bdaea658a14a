import io
import re

import pytest
from btaml_portal.uploads import (
    IMAGES_BUCKET,
    PROFILES_BUCKET,
    ImageValidationError,
    MediaStorage,
    StorageError,
    avatar_object_name,
    image_object_name,
    validate_image,
)
from starlette.datastructures import Headers, UploadFile

from .factories import PNG_BYTES


def _upload(data: bytes, filename: str = "photo.png", content_type: str = "image/png"):
    return UploadFile(
        file=io.BytesIO(data),
        size=len(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


class TestValidateImage:
    def test_accepts_small_image(self):
        validate_image(_upload(PNG_BYTES), max_bytes=1024)

    def test_rejects_non_image(self):
        upload = _upload(b"%PDF-1.4", filename="doc.pdf", content_type="application/pdf")
        with pytest.raises(ImageValidationError, match="Please select a valid image file"):
            validate_image(upload, max_bytes=1024)

    def test_rejects_large_image(self):
        upload = _upload(b"\x00" * (2 * 1024 * 1024 + 1))
        with pytest.raises(ImageValidationError, match="Image size must be less than 2MB"):
            validate_image(upload, max_bytes=2 * 1024 * 1024)

    def test_size_without_header_is_measured(self):
        upload = UploadFile(
            file=io.BytesIO(b"\x00" * 2048),
            filename="big.png",
            headers=Headers({"content-type": "image/png"}),
        )
        with pytest.raises(ImageValidationError):
            validate_image(upload, max_bytes=1024)


class TestObjectNames:
    def test_image_name(self):
        name = image_object_name("scholarships", "Poster.PNG")
        assert re.fullmatch(r"scholarships/\d+-[0-9a-z]{9}\.png", name)

    def test_default_extension(self):
        assert image_object_name("security", "noext").endswith(".jpg")
        assert image_object_name("security", None).endswith(".jpg")

    def test_names_are_unique(self):
        assert image_object_name("business", "a.png") != image_object_name("business", "a.png")

    def test_avatar_name(self):
        assert re.fullmatch(r"7/\d+\.jpeg", avatar_object_name(7, "me.jpeg"))


class TestMediaStorage:
    async def test_save_returns_public_url(self, tmp_path):
        storage = MediaStorage(tmp_path, "/media/")
        url = await storage.save(IMAGES_BUCKET, "security/1-abc.png", PNG_BYTES)
        assert url == "/media/images/security/1-abc.png"
        assert (tmp_path / "images" / "security" / "1-abc.png").read_bytes() == PNG_BYTES

    async def test_unknown_bucket(self, tmp_path):
        storage = MediaStorage(tmp_path, "/media")
        with pytest.raises(StorageError):
            await storage.save("secrets", "a.png", PNG_BYTES)

    async def test_name_cannot_escape_bucket(self, tmp_path):
        storage = MediaStorage(tmp_path, "/media")
        with pytest.raises(StorageError):
            await storage.save(PROFILES_BUCKET, "../images/a.png", PNG_BYTES)

    async def test_existing_object_is_not_replaced(self, tmp_path):
        storage = MediaStorage(tmp_path, "/media")
        await storage.save(IMAGES_BUCKET, "a.png", PNG_BYTES)
        with pytest.raises(StorageError, match="Upload failed"):
            await storage.save(IMAGES_BUCKET, "a.png", b"other")

    async def test_save_upload_validates_first(self, tmp_path):
        storage = MediaStorage(tmp_path, "/media")
        upload = _upload(b"text", filename="a.txt", content_type="text/plain")
        with pytest.raises(ImageValidationError):
            await storage.save_upload(
                upload, bucket=IMAGES_BUCKET, name="a.txt", max_bytes=1024
            )
        assert not (tmp_path / "images").exists()
