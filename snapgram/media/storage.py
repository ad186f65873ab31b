"""Image host integration backed by any S3-compatible object store."""
from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from boto3.session import Session
from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from snapgram.core.config import settings
from snapgram.core.errors import UpstreamFailure, ValidationError

logger = logging.getLogger(__name__)

POSTS_FOLDER = "posts"
PROFILE_PICTURES_FOLDER = "profile_pics"

_EXTENSIONS = {"image/jpeg": ".jpg", "image/png": ".png", "image/gif": ".gif"}


@dataclass(frozen=True)
class UploadedImage:
    """Metadata returned after storing an image."""

    url: str
    key: str
    content_type: str
    size: int


def object_key(folder: str, owner_id: str, content_type: str, *, now: Optional[float] = None) -> str:
    """Build ``{folder}/{owner_id}_{millis}{ext}`` with path-safe segments."""

    millis = int((now if now is not None else time.time()) * 1000)
    safe_owner = re.sub(r"[^A-Za-z0-9_-]", "-", owner_id) or "anonymous"
    extension = _EXTENSIONS.get(content_type, "")
    return f"{folder.strip('/')}/{safe_owner}_{millis}{extension}"


def validate_image(file: UploadFile, data: bytes) -> str:
    """Enforce the accepted image types and size limit, returning the content type."""

    content_type = (file.content_type or "").split(";")[0].strip().lower()
    if content_type not in settings.ALLOWED_IMAGE_TYPES:
        raise ValidationError("Invalid file type, only JPEG, PNG, or GIF are allowed!")
    if not data:
        raise ValidationError("Uploaded image is empty")
    if len(data) > settings.MAX_UPLOAD_BYTES:
        limit_mb = settings.MAX_UPLOAD_BYTES / (1024 * 1024)
        raise ValidationError(f"Image exceeds the {limit_mb:g}MB upload limit")
    return content_type


class ImageStorage:
    """Uploads images to the configured bucket and returns their public URLs."""

    def __init__(self, client: BaseClient, bucket: str, public_url: str):
        self.client = client
        self.bucket = bucket
        self.public_url = public_url.rstrip("/")

    def build_public_url(self, key: str) -> str:
        return f"{self.public_url}/{key.lstrip('/')}"

    async def upload_image(self, file: UploadFile, *, folder: str, owner_id: str) -> UploadedImage:
        """Validate and upload an ``UploadFile``; failures surface as ``UpstreamFailure``."""

        # Read at most one byte past the limit so oversized uploads are never held in full
        data = await file.read(settings.MAX_UPLOAD_BYTES + 1)
        content_type = validate_image(file, data)
        key = object_key(folder, owner_id, content_type)

        def _upload() -> None:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                ACL="public-read",
            )

        try:
            await run_in_threadpool(_upload)
        except (ClientError, BotoCoreError) as exc:
            logger.exception("Image upload to %s failed", key)
            raise UpstreamFailure("Image upload failed. Please try again.") from exc

        logger.info("Uploaded %s (%d bytes) to bucket %s", key, len(data), self.bucket)
        return UploadedImage(url=self.build_public_url(key), key=key, content_type=content_type, size=len(data))


@lru_cache(maxsize=1)
def get_storage_client() -> BaseClient:
    """Create a singleton boto3 client for the image host."""

    session = Session()
    return session.client(
        "s3",
        region_name=settings.STORAGE_REGION,
        endpoint_url=settings.STORAGE_ENDPOINT_URL,
        aws_access_key_id=settings.STORAGE_ACCESS_KEY,
        aws_secret_access_key=settings.STORAGE_SECRET_KEY,
    )


def _default_public_url() -> str:
    if settings.STORAGE_PUBLIC_URL:
        return settings.STORAGE_PUBLIC_URL
    if settings.STORAGE_ENDPOINT_URL:
        return f"{settings.STORAGE_ENDPOINT_URL.rstrip('/')}/{settings.STORAGE_BUCKET}"
    return f"https://{settings.STORAGE_BUCKET}.s3.{settings.STORAGE_REGION}.amazonaws.com"


@lru_cache(maxsize=1)
def get_image_storage() -> ImageStorage:
    """FastAPI dependency returning the shared image storage."""

    return ImageStorage(get_storage_client(), settings.STORAGE_BUCKET, _default_public_url())


__all__ = [
    "ImageStorage",
    "UploadedImage",
    "POSTS_FOLDER",
    "PROFILE_PICTURES_FOLDER",
    "get_image_storage",
    "get_storage_client",
    "object_key",
    "validate_image",
]
