"""
Image uploads into the local media store.

Files are validated before anything is written, then saved under a
bucket directory of ``MEDIA_ROOT`` and served from ``MEDIA_URL``.
"""

import logging
import os
import secrets
import string
import time
from pathlib import Path

from btaml_html.forms import ValidationError
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

logger = logging.getLogger(__name__)

IMAGES_BUCKET = "images"
PROFILES_BUCKET = "profiles"
BUCKETS = (IMAGES_BUCKET, PROFILES_BUCKET)

_BASE36 = string.digits + string.ascii_lowercase


class ImageValidationError(ValidationError):
    """The upload is not an image or is too large."""


class StorageError(RuntimeError):
    """The media store could not write a file."""


def _upload_size(upload: UploadFile) -> int:
    if upload.size is not None:
        return upload.size
    position = upload.file.tell()
    upload.file.seek(0, os.SEEK_END)
    size = upload.file.tell()
    upload.file.seek(position)
    return size


def validate_image(upload: UploadFile, max_bytes: int) -> None:
    """
    Raises:
        ImageValidationError: The content type does not start with
            ``image/`` or the file is larger than `max_bytes`.
    """
    content_type = upload.content_type or ""
    if not content_type.startswith("image/"):
        raise ImageValidationError("Please select a valid image file")
    if _upload_size(upload) > max_bytes:
        megabytes = max_bytes // (1024 * 1024)
        raise ImageValidationError(f"Image size must be less than {megabytes}MB")


def _extension(filename: str | None) -> str:
    if filename and "." in filename:
        ext = filename.rsplit(".", 1)[-1].lower()
        if ext:
            return ext
    return "jpg"


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def image_object_name(prefix: str, filename: str | None) -> str:
    """
    Example:
        >>> image_object_name("scholarships", "Poster.PNG")
        'scholarships/1733050000000-k3j9x0a2b.png'
    """
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"{prefix}/{_now_ms()}-{suffix}.{_extension(filename)}"


def avatar_object_name(user_id: int, filename: str | None) -> str:
    return f"{user_id}/{_now_ms()}.{_extension(filename)}"


class MediaStorage:
    """
    Buckets are directories below `root`; public URLs live below `base_url`.

    Example:
        >>> storage = MediaStorage(Path("media"), "/media")
        >>> await storage.save("images", "security/1-abc.png", data)
        '/media/images/security/1-abc.png'
    """

    def __init__(self, root: Path | str, base_url: str) -> None:
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def path_for(self, bucket: str, name: str) -> Path:
        if bucket not in BUCKETS:
            msg = f"Unknown bucket {bucket!r}"
            raise StorageError(msg)
        bucket_root = (self.root / bucket).resolve()
        path = (bucket_root / name).resolve()
        if not path.is_relative_to(bucket_root):
            msg = f"Object name {name!r} escapes bucket {bucket!r}"
            raise StorageError(msg)
        return path

    def url_for(self, bucket: str, name: str) -> str:
        return f"{self.base_url}/{bucket}/{name}"

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        # Object names are unique; never replace an existing file
        with path.open("xb") as fh:
            fh.write(data)

    async def save(self, bucket: str, name: str, data: bytes) -> str:
        """
        Write `data` and return its public URL.

        Raises:
            StorageError: Unknown bucket, bad name, or the write failed.
        """
        path = self.path_for(bucket, name)
        try:
            await run_in_threadpool(self._write, path, data)
        except OSError as e:
            logger.exception("Could not store %s/%s", bucket, name)
            msg = f"Upload failed: {e}"
            raise StorageError(msg) from e
        logger.debug("Stored %s (%s bytes)", path, len(data))
        return self.url_for(bucket, name)

    async def save_upload(
        self,
        upload: UploadFile,
        *,
        bucket: str,
        name: str,
        max_bytes: int,
    ) -> str:
        """Validate `upload` as an image and store it under `name`."""
        validate_image(upload, max_bytes)
        await upload.seek(0)
        data = await upload.read()
        return await self.save(bucket, name, data)
