"""
Asset uploader for product images.

Images are stored as objects in an S3-compatible bucket and referenced by
their public URL. The object key layout is ``<folder>/<public_id><ext>``.
"""

import mimetypes
import os
import uuid
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import unquote

import boto3
from botocore.exceptions import ClientError, BotoCoreError
from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel
import structlog

from catalog_api.core.config import Settings, settings
from catalog_api.core.exceptions import UploadError

logger = structlog.get_logger()


CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


class MediaStorageConfig(BaseModel):
    """Connection and policy settings for the media host."""

    bucket: str
    region: str = "us-east-1"
    access_key_id: str = ""
    secret_access_key: str = ""
    endpoint_url: Optional[str] = None
    public_base_url: str = ""
    max_upload_bytes: int = 5 * 1024 * 1024
    allowed_content_types: List[str] = list(CONTENT_TYPE_EXTENSIONS)

    @classmethod
    def from_settings(cls, app_settings: Settings) -> "MediaStorageConfig":
        return cls(
            bucket=app_settings.media_bucket,
            region=app_settings.aws_region,
            access_key_id=app_settings.aws_access_key_id,
            secret_access_key=app_settings.aws_secret_access_key,
            endpoint_url=app_settings.media_endpoint_url or None,
            public_base_url=app_settings.media_public_base_url,
            max_upload_bytes=app_settings.max_upload_size_mb * 1024 * 1024,
            allowed_content_types=app_settings.get_allowed_image_types(),
        )

    @property
    def base_url(self) -> str:
        """URL prefix under which every stored object is publicly reachable."""
        if self.public_base_url:
            return self.public_base_url.rstrip("/")
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com"


@dataclass
class ImagePayload:
    """Image bytes plus content type, independent of how they arrived."""

    data: bytes
    content_type: str
    filename: Optional[str] = None
    # Set when the bytes came from a temporary file owned by this payload
    temp_path: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_bytes(cls, data: bytes, content_type: str, filename: Optional[str] = None) -> "ImagePayload":
        return cls(data=data, content_type=content_type.lower(), filename=filename)

    @classmethod
    def from_path(
        cls, path: str, content_type: Optional[str] = None, temporary: bool = False
    ) -> "ImagePayload":
        try:
            with open(path, "rb") as fh:
                data = fh.read()
        except OSError as e:
            raise UploadError("Could not read image payload", {"path": path, "reason": str(e)}) from e

        content_type = content_type or mimetypes.guess_type(path)[0] or "application/octet-stream"
        return cls(
            data=data,
            content_type=content_type.lower(),
            filename=os.path.basename(path),
            temp_path=path if temporary else None,
        )

    @classmethod
    async def from_upload_file(cls, upload: Optional[UploadFile]) -> Optional["ImagePayload"]:
        """Buffer a multipart upload. Returns None when no file was sent."""
        if upload is None:
            return None
        try:
            data = await upload.read()
        except OSError as e:
            raise UploadError("Could not read image payload", {"filename": upload.filename, "reason": str(e)}) from e
        finally:
            await upload.close()

        if not data and not upload.filename:
            return None
        return cls(
            data=data,
            content_type=(upload.content_type or "application/octet-stream").lower(),
            filename=upload.filename,
        )


class AssetUploader:
    """Uploads image payloads to the media host and deletes them by URL."""

    def __init__(self, config: MediaStorageConfig, client=None):
        self.config = config
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self.config.region,
                endpoint_url=self.config.endpoint_url,
                aws_access_key_id=self.config.access_key_id or None,
                aws_secret_access_key=self.config.secret_access_key or None,
            )
            logger.info("S3 client initialized", bucket=self.config.bucket, region=self.config.region)
        return self._client

    def _validate(self, payload: ImagePayload) -> None:
        if not self.config.bucket:
            raise UploadError("Media storage is not configured")
        if not payload.data:
            raise UploadError("Image payload is empty", {"filename": payload.filename})
        if payload.content_type not in self.config.allowed_content_types:
            raise UploadError(
                f"Unsupported media type: {payload.content_type}",
                {"allowed": ", ".join(self.config.allowed_content_types)},
            )
        if payload.size > self.config.max_upload_bytes:
            raise UploadError(
                "Image exceeds the maximum upload size",
                {"size": payload.size, "max_bytes": self.config.max_upload_bytes},
            )

    @staticmethod
    def _extension_for(payload: ImagePayload) -> str:
        ext = CONTENT_TYPE_EXTENSIONS.get(payload.content_type)
        if ext:
            return ext
        if payload.filename:
            return os.path.splitext(payload.filename)[1].lower()
        return mimetypes.guess_extension(payload.content_type) or ""

    async def upload(self, payload: ImagePayload, folder: str) -> str:
        """Store ``payload`` under ``folder`` and return its public URL.

        Raises:
            UploadError: payload rejected locally or by the media host
        """
        self._validate(payload)

        folder = folder.strip("/")
        public_id = uuid.uuid4().hex
        filename = f"{public_id}{self._extension_for(payload)}"
        key = f"{folder}/{filename}" if folder else filename

        try:
            await run_in_threadpool(
                self.client.put_object,
                Bucket=self.config.bucket,
                Key=key,
                Body=payload.data,
                ContentType=payload.content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to upload asset",
                         key=key,
                         error=str(e),
                         error_type=type(e).__name__)
            raise UploadError("Failed to upload image", {"key": key, "reason": str(e)}) from e

        if payload.temp_path:
            self._remove_temp_file(payload.temp_path)

        url = f"{self.config.base_url}/{key}"
        logger.info("Uploaded asset", key=key, size=payload.size, content_type=payload.content_type)
        return url

    def object_key_from_url(self, url: Optional[str]) -> Optional[str]:
        base = self.config.base_url + "/"
        if not url or not url.startswith(base):
            return None
        key = unquote(url[len(base):].split("?", 1)[0])
        return key or None

    def public_id_from_url(self, url: Optional[str]) -> Optional[str]:
        """Identifier between the folder path and the file extension."""
        key = self.object_key_from_url(url)
        if key is None:
            return None
        name = key.rsplit("/", 1)[-1]
        return os.path.splitext(name)[0] or None

    async def delete_asset(self, url: Optional[str]) -> None:
        """Best-effort delete. Failures are logged, never raised."""
        key = self.object_key_from_url(url)
        if key is None:
            logger.warning("Skipping delete of asset outside the media host", url=url)
            return

        try:
            await run_in_threadpool(
                self.client.delete_object,
                Bucket=self.config.bucket,
                Key=key,
            )
            logger.info("Deleted asset", key=key, public_id=self.public_id_from_url(url))
        except Exception as e:
            logger.warning("Failed to delete asset",
                           key=key,
                           error=str(e),
                           error_type=type(e).__name__)

    @staticmethod
    def _remove_temp_file(path: str) -> None:
        try:
            os.remove(path)
        except OSError as e:
            logger.warning("Could not remove temporary upload file", path=path, error=str(e))


asset_uploader = AssetUploader(MediaStorageConfig.from_settings(settings))


def get_asset_uploader() -> AssetUploader:
    return asset_uploader
