"""
Pytest configuration and fixtures for LazyGallery tests
"""

import hashlib
import io
import os
import struct
import tempfile
import zlib

_TEST_DIR = tempfile.mkdtemp(prefix="lazygallery-tests-")
TEST_DB_PATH = os.path.join(_TEST_DIR, "metadata.sqlite3")

os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{TEST_DB_PATH}")
os.environ.setdefault("S3_ACCESS_KEY", "test-access")
os.environ.setdefault("S3_SECRET_KEY", "test-secret")
os.environ["ENSURE_BUCKETS_ON_STARTUP"] = "false"

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy import create_engine

from lazygallery.core.database import Base
from lazygallery.main import app
from lazygallery.models import Gallery, MediaAsset  # noqa: F401
from lazygallery.services.storage import ObjectNotFound, ObjectStat, StorageError, get_object_store


class InMemoryObjectStore:
    """Same surface and error types as the S3 adapter, kept in a dict."""

    def __init__(self):
        self.objects = {}
        self.buckets = set()
        self.put_calls = []
        self.failing_buckets = set()

    def ensure_bucket(self, name):
        self.buckets.add(name)

    def put(self, bucket, key, data, content_type, metadata=None):
        if bucket in self.failing_buckets:
            raise StorageError(f"put_object failed: {bucket} unavailable")
        self.put_calls.append((bucket, key))
        self.objects[(bucket, key)] = (bytes(data), content_type, dict(metadata or {}))

    def stat(self, bucket, key):
        try:
            data, content_type, _ = self.objects[(bucket, key)]
        except KeyError:
            raise ObjectNotFound(f"{bucket}/{key}") from None
        return ObjectStat(size=len(data), etag=f'"{hashlib.md5(data).hexdigest()}"', content_type=content_type)

    def get(self, bucket, key):
        try:
            data, _, _ = self.objects[(bucket, key)]
        except KeyError:
            raise ObjectNotFound(f"{bucket}/{key}") from None
        return io.BytesIO(data)

    def read(self, bucket, key):
        return self.get(bucket, key).read()

    def remove(self, bucket, key):
        self.objects.pop((bucket, key), None)

    def keys(self, bucket):
        return sorted(key for stored_bucket, key in self.objects if stored_bucket == bucket)


@pytest.fixture(autouse=True)
def metadata_db():
    """Fresh SQLite schema for every test."""
    engine = create_engine(f"sqlite:///{TEST_DB_PATH}")
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def object_store():
    return InMemoryObjectStore()


@pytest.fixture
def client(object_store):
    app.dependency_overrides[get_object_store] = lambda: object_store
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


def make_png(width=1, height=1, color=(200, 30, 30)):
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


def png_header(width, height):
    """A PNG that only declares its size, enough for Pillow to open it lazily."""

    def chunk(kind, payload):
        return struct.pack(">I", len(payload)) + kind + payload + struct.pack(">I", zlib.crc32(kind + payload))

    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", ihdr) + chunk(b"IEND", b"")


def create_gallery(client, owner_id="u1", name="Trip", password="pw", shared=False):
    response = client.post(
        "/api/galleries",
        json={"ownerId": owner_id, "name": name, "password": password, "shared": shared},
    )
    assert response.status_code == 200, response.text
    return response.json()


def upload(client, gallery_id, files, owner_id="u1"):
    response = client.post(
        f"/api/galleries/{gallery_id}/upload",
        headers={"X-Owner-Id": owner_id},
        files=[("files", item) for item in files],
    )
    assert response.status_code == 200, response.text
    return response.json()["uploaded"]


def share_slug_of(gallery_view):
    return gallery_view["shareLink"].rsplit("/g/", 1)[1]


@pytest.fixture
def png_bytes():
    return make_png()
