"""Image attachment storage backends (local disk and S3)."""
from __future__ import annotations

import abc
import asyncio
import logging
import re
import secrets
import time
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Any, Iterable

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import UploadFile

from blogit.core.config import Settings
from blogit.core.errors import InternalError, UploadError

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")


@dataclass
class ImageUpload:
    """Uploaded image as received from the client."""

    data: bytes
    filename: str
    content_type: str | None

    @classmethod
    async def from_upload_file(cls, upload: UploadFile, max_bytes: int) -> "ImageUpload":
        """Read at most ``max_bytes`` of the part; anything larger is rejected unread."""

        data = await upload.read(max_bytes + 1)
        if len(data) > max_bytes:
            raise UploadError(f"Image exceeds {max_bytes} bytes")
        return cls(data=data, filename=upload.filename or "", content_type=upload.content_type)


def _split_filename(filename: str) -> tuple[str, str]:
    path = PurePath(filename.replace("\\", "/"))
    return path.stem if path.suffix else path.name, path.suffix.lower().lstrip(".")


def sanitize_filename(filename: str) -> str:
    """Keep a safe ASCII stem and the lowercased extension."""

    stem, extension = _split_filename(filename)
    stem = _WHITESPACE.sub("-", stem.strip())
    stem = _UNSAFE.sub("", stem).lstrip(".") or "image"
    return f"{stem}.{extension}" if extension else stem


def build_stored_name(filename: str) -> str:
    """Epoch millis and a random token ahead of the sanitized filename."""

    return f"{int(time.time() * 1000)}-{secrets.token_hex(4)}-{sanitize_filename(filename)}"


class ImageStorage(abc.ABC):
    """Turn an uploaded image into a durable, publicly fetchable URL."""

    def __init__(self, allowed_extensions: Iterable[str], max_bytes: int) -> None:
        self.allowed_extensions = {ext.lower().lstrip(".") for ext in allowed_extensions}
        self.max_bytes = max_bytes

    def validate(self, upload: ImageUpload) -> None:
        _, extension = _split_filename(upload.filename)
        if extension not in self.allowed_extensions:
            allowed = ", ".join(sorted(self.allowed_extensions))
            raise UploadError(f"Only {allowed} images are allowed")
        if not upload.content_type or not upload.content_type.startswith("image/"):
            raise UploadError("Only image files are allowed")
        if not upload.data:
            raise UploadError("Uploaded image is empty")
        if len(upload.data) > self.max_bytes:
            raise UploadError(f"Image exceeds {self.max_bytes} bytes")

    async def read(self, upload: UploadFile) -> ImageUpload:
        return await ImageUpload.from_upload_file(upload, self.max_bytes)

    async def save(self, upload: ImageUpload) -> str:
        self.validate(upload)
        url = await self._store(build_stored_name(upload.filename), upload)
        logger.info("Stored image %s (%d bytes) at %s", upload.filename, len(upload.data), url)
        return url

    @abc.abstractmethod
    async def _store(self, name: str, upload: ImageUpload) -> str:
        """Persist the validated upload under ``name`` and return its public URL."""


class LocalImageStorage(ImageStorage):
    """Write images to a directory served by the application as static files."""

    def __init__(
        self,
        directory: str | Path,
        url_prefix: str = "/uploads",
        allowed_extensions: Iterable[str] = ("jpg", "jpeg", "png", "webp"),
        max_bytes: int = 5 * 1024 * 1024,
    ) -> None:
        super().__init__(allowed_extensions, max_bytes)
        self.directory = Path(directory)
        self.url_prefix = url_prefix.rstrip("/")

    async def _store(self, name: str, upload: ImageUpload) -> str:
        target = self.directory / name
        try:
            await asyncio.to_thread(self._write, target, upload.data)
        except OSError as exc:
            raise InternalError(f"Could not write image {name}") from exc
        return f"{self.url_prefix}/{name}"

    def _write(self, target: Path, data: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        with target.open("xb") as handle:
            handle.write(data)


class S3ImageStorage(ImageStorage):
    """Upload images to an S3 bucket under a fixed key prefix."""

    def __init__(
        self,
        client: Any,
        bucket: str,
        region: str,
        folder: str = "blogit",
        public_base_url: str | None = None,
        allowed_extensions: Iterable[str] = ("jpg", "jpeg", "png", "webp"),
        max_bytes: int = 5 * 1024 * 1024,
    ) -> None:
        super().__init__(allowed_extensions, max_bytes)
        self.client = client
        self.bucket = bucket
        self.folder = folder.strip("/")
        base = public_base_url or f"https://{bucket}.s3.{region}.amazonaws.com"
        self.public_base_url = base.rstrip("/")

    async def _store(self, name: str, upload: ImageUpload) -> str:
        key = f"{self.folder}/{name}" if self.folder else name
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=upload.data,
                ContentType=upload.content_type or "application/octet-stream",
            )
        except (BotoCoreError, ClientError) as exc:
            raise InternalError(f"Could not upload image to s3://{self.bucket}/{key}") from exc
        return f"{self.public_base_url}/{key}"


def build_image_storage(settings: Settings) -> ImageStorage:
    if settings.image_storage == "s3":
        if not settings.s3_bucket:
            raise ValueError("BLOGIT_S3_BUCKET is required when image storage is 's3'")
        client = boto3.client(
            "s3",
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.s3_region,
        )
        return S3ImageStorage(
            client,
            bucket=settings.s3_bucket,
            region=settings.s3_region,
            folder=settings.s3_folder,
            public_base_url=settings.s3_public_base_url,
            allowed_extensions=settings.allowed_image_extensions,
            max_bytes=settings.max_image_bytes,
        )
    return LocalImageStorage(
        settings.upload_dir,
        url_prefix=settings.upload_url_prefix,
        allowed_extensions=settings.allowed_image_extensions,
        max_bytes=settings.max_image_bytes,
    )
