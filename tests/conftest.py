"""Test configuration and fixtures for the catalog API."""

import os
import tempfile

_DB_PATH = os.path.join(tempfile.gettempdir(), f"catalog_api_test_{os.getpid()}.db")

# Settings are read at import time
os.environ["ENV"] = "test"
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_DB_PATH}")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("MEDIA_BUCKET", "catalog-test")
os.environ.setdefault("MEDIA_PUBLIC_BASE_URL", "https://media.test/catalog-test")

import pytest
import pytest_asyncio
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient

from catalog_api.core.database import async_session_maker, create_db_and_tables, drop_db_and_tables
from catalog_api.main import app
from catalog_api.services.asset_uploader import AssetUploader, ImagePayload, MediaStorageConfig, get_asset_uploader

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
BASE_URL = "https://media.test/catalog-test"


class FakeS3Client:
    """In-memory stand-in for a boto3 S3 client."""

    def __init__(self):
        self.objects = {}
        self.deleted = []
        self.fail_put = False
        self.fail_delete = False

    def put_object(self, Bucket, Key, Body, ContentType):
        if self.fail_put:
            raise ClientError(
                {"Error": {"Code": "InternalError", "Message": "media host unavailable"}}, "PutObject"
            )
        self.objects[Key] = {"bucket": Bucket, "body": Body, "content_type": ContentType}
        return {}

    def delete_object(self, Bucket, Key):
        self.deleted.append(Key)
        if self.fail_delete:
            raise ClientError(
                {"Error": {"Code": "InternalError", "Message": "media host unavailable"}}, "DeleteObject"
            )
        self.objects.pop(Key, None)
        return {}


def png_payload(name: str = "photo.png") -> ImagePayload:
    return ImagePayload.from_bytes(PNG_BYTES, "image/png", filename=name)


@pytest.fixture
def s3_client():
    return FakeS3Client()


@pytest.fixture
def media_config():
    return MediaStorageConfig(
        bucket="catalog-test",
        public_base_url=BASE_URL,
        max_upload_bytes=1024,
    )


@pytest.fixture
def uploader(media_config, s3_client):
    return AssetUploader(media_config, client=s3_client)


@pytest.fixture
def make_client(uploader):
    """Build a TestClient on a fresh database with the fake media host."""
    clients = []

    def _make(raise_server_exceptions: bool = True) -> TestClient:
        if os.path.exists(_DB_PATH):
            os.remove(_DB_PATH)
        app.dependency_overrides[get_asset_uploader] = lambda: uploader
        test_client = TestClient(app, raise_server_exceptions=raise_server_exceptions)
        test_client.__enter__()
        clients.append(test_client)
        return test_client

    yield _make

    for test_client in clients:
        test_client.__exit__(None, None, None)
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client):
    return make_client()


@pytest_asyncio.fixture
async def db_session():
    await drop_db_and_tables()
    await create_db_and_tables()
    async with async_session_maker() as session:
        yield session
