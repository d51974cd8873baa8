"""Object storage for profile images and recording audio.

Files go to an S3-compatible bucket when one is configured and fall back
to a local directory when it is not, or when the upload to the bucket
fails. Local images are served by ``GET /api/images/{filename}`` and local
recordings by ``GET /api/audio/{filename}``.
"""

import logging
import secrets
import shutil
import time
from pathlib import Path
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .. import config

logger = logging.getLogger(__name__)

_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


class ImageValidationError(Exception):
    """Raised when an uploaded image is rejected."""

    pass


def image_extension(content_type: Optional[str]) -> str:
    ext = _IMAGE_TYPES.get((content_type or "").lower())
    if ext is None:
        raise ImageValidationError("Only JPEG, PNG, WEBP or GIF images are allowed")
    return ext


def make_s3_client():
    return boto3.client(
        "s3",
        endpoint_url=config.S3_ENDPOINT_URL or None,
        aws_access_key_id=config.S3_ACCESS_KEY or None,
        aws_secret_access_key=config.S3_SECRET_KEY or None,
        region_name=config.S3_REGION,
        config=Config(s3={"addressing_style": "path"}),
    )


class _BucketStore:
    """Bucket upload with a local directory fallback."""

    def __init__(self, local_dir: Path, client=None, bucket: str = config.S3_BUCKET):
        self.local_dir = Path(local_dir)
        self.bucket = bucket
        self._client = client
        if self._client is None and self.bucket:
            self._client = make_s3_client()

    @property
    def uses_object_storage(self) -> bool:
        return bool(self.bucket and self._client is not None)

    def _put(self, key: str, body, content_type: Optional[str]) -> Optional[str]:
        """Upload to the bucket; the public URL, or None when that failed."""
        try:
            self._client.put_object(Bucket=self.bucket, Key=key, Body=body, ContentType=content_type)
        except (BotoCoreError, ClientError):
            logger.exception("Object storage upload of %s failed", key)
            return None
        logger.info("Uploaded to bucket %s as %s", self.bucket, key)
        return self._public_url(key)

    def _public_url(self, key: str) -> str:
        if config.S3_PUBLIC_URL:
            return f"{config.S3_PUBLIC_URL.rstrip('/')}/{key}"
        endpoint = (config.S3_ENDPOINT_URL or "https://s3.amazonaws.com").rstrip("/")
        return f"{endpoint}/{self.bucket}/{key}"


class ImageStore(_BucketStore):
    """Stores profile images and returns the public URL for each."""

    def __init__(self, local_dir: Path = config.IMAGE_DIR, client=None, bucket: str = config.S3_BUCKET):
        super().__init__(local_dir, client, bucket)

    def save(self, user_id: str, data: bytes, content_type: Optional[str]) -> str:
        if len(data) > config.IMAGE_MAX_FILE_SIZE_MB * 1024 * 1024:
            raise ImageValidationError(f"Image larger than {config.IMAGE_MAX_FILE_SIZE_MB} MB")
        ext = image_extension(content_type)
        filename = f"profile-{user_id}-{int(time.time() * 1000)}-{secrets.token_hex(4)}{ext}"

        if self.uses_object_storage:
            url = self._put(f"profile-images/{filename}", data, content_type)
            if url is not None:
                return url
            logger.warning("Storing profile image %s locally", filename)

        (self.local_dir / filename).write_bytes(data)
        return f"{config.API_PREFIX}/images/{filename}"


class AudioStore(_BucketStore):
    """Keeps a playable copy of each recording.

    The bucket key is ``recordings/<user>/<ms>-<original name>``. The local
    copy keeps the name of the temporary upload, which is also the
    recording's ``filename``.
    """

    def __init__(self, local_dir: Path = config.AUDIO_DIR, client=None, bucket: str = config.S3_BUCKET):
        super().__init__(local_dir, client, bucket)

    def save(self, user_id: str, source: Path, original_filename: Optional[str] = None) -> Optional[str]:
        """Store *source* and return its URL, or None when nothing could be kept."""
        source = Path(source)
        if self.uses_object_storage:
            key = f"recordings/{user_id}/{int(time.time() * 1000)}-{original_filename or source.name}"
            url = self._put(key, source.read_bytes(), config.AUDIO_FORMAT)
            if url is not None:
                return url
            logger.warning("Keeping recording %s locally", source.name)

        try:
            shutil.copyfile(source, self.local_dir / source.name)
        except OSError:
            logger.exception("Could not keep a local copy of %s", source.name)
            return None
        return f"{config.API_PREFIX}/audio/{source.name}"

    def remove_local(self, filename: str) -> None:
        """Delete the local copy of a recording; a missing file is not an error."""
        try:
            (self.local_dir / Path(filename).name).unlink(missing_ok=True)
        except OSError:
            logger.exception("Error removing local recording %s", filename)


image_store = ImageStore()
audio_store = AudioStore()


def get_image_store() -> ImageStore:
    """Dependency: the shared image store."""
    return image_store


def get_audio_store() -> AudioStore:
    """Dependency: the shared recording audio store."""
    return audio_store
