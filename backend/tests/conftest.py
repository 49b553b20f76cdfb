"""
Notepin — Test Configuration (conftest.py)
===========================================

What:  Shared pytest fixtures for the whole suite.
How:   Environment is pointed at throwaway directories BEFORE any notepin
       import, so the module-level settings singleton and app never touch
       a real data or upload directory.

Fixture Hierarchy:
    Function-scoped (fresh for each test):
    ├── test_settings:   Settings bound to tmp_path
    ├── upload_service:  UploadService writing under tmp_path/uploads
    ├── store:           one PostStore per backend (parametrized)
    ├── post_service:    PostService over `store` + `upload_service`
    ├── app:             create_app() over the same pieces
    ├── test_client:     HTTPX AsyncClient over ASGITransport
    └── sample_image_bytes
"""

import os
import tempfile

# Override settings for testing BEFORE any notepin imports
_session_dir = tempfile.mkdtemp(prefix="notepin_test_")
os.environ["DATA_DIR"] = os.path.join(_session_dir, "data")
os.environ["UPLOAD_DIR"] = os.path.join(_session_dir, "uploads")
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from notepin.config import Settings
from notepin.services.post_service import PostService
from notepin.services.upload_service import UploadService
from notepin.stores.json_file import JsonFilePostStore
from notepin.stores.memory import MemoryPostStore
from notepin.stores.sql import SqlPostStore

BACKENDS = ["memory", "json", "database"]


def make_store(backend: str, data_dir):
    if backend == "memory":
        return MemoryPostStore()
    if backend == "json":
        return JsonFilePostStore(data_dir / "posts.json")
    return SqlPostStore(f"sqlite+aiosqlite:///{data_dir / 'notepin.db'}")


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        data_dir=str(tmp_path / "data"),
        upload_dir=str(tmp_path / "uploads"),
        storage_backend="memory",
        log_level="WARNING",
    )


@pytest.fixture
def upload_service(test_settings):
    return UploadService(settings=test_settings)


@pytest_asyncio.fixture(params=BACKENDS)
async def store(request, tmp_path):
    """Every backend in turn; the SQL engine is disposed afterwards."""
    data_dir = tmp_path / "data"
    data_dir.mkdir(exist_ok=True)
    post_store = make_store(request.param, data_dir)
    await post_store.open()
    yield post_store
    await post_store.close()


@pytest.fixture
def post_service(store, upload_service, test_settings):
    return PostService(store, upload_service, settings=test_settings)


@pytest.fixture
def app(store, test_settings):
    from notepin.main import create_app

    return create_app(settings=test_settings, store=store)


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient wired straight into the app.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def sample_image_bytes():
    """Minimal JPEG: SOI marker + JFIF header + EOI marker."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )
