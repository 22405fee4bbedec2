"""
Scholar Registry: Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the test suite.
How:   Service tests use a mocked AsyncSession (no database); API tests run
       the real FastAPI app against a throwaway SQLite file and an
       in-memory blob store.

Fixtures:
    ├── mock_db_session: AsyncMock session; execute() results are scripted per test
    ├── blob_store: InMemoryBlobStore recording every upload and delete
    ├── sample_image_bytes: minimal PNG payload
    ├── database: Database on a temp SQLite file with all tables created
    └── test_client: httpx AsyncClient wired to a fresh app instance
"""

import os
import tempfile
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

# Must be set before scholar_registry.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["BLOB_BACKEND"] = "local"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="scholar_registry_test_")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from scholar_registry.blobs.base import BlobStore
from scholar_registry.database import Database
from scholar_registry.exceptions import BlobStorageError
from scholar_registry.main import create_app
from scholar_registry.services.scholar_service import ScholarService


class InMemoryBlobStore(BlobStore):
    """BlobStore double keeping objects in a dict and counting calls."""

    base_url = "https://test-bucket.s3.us-east-2.amazonaws.com"

    def __init__(self, fail_deletes: bool = False):
        self.objects: Dict[str, bytes] = {}
        self.uploads: List[str] = []
        self.deletes: List[str] = []
        self.fail_deletes = fail_deletes

    async def upload(self, key: str, content: bytes, content_type: Optional[str] = None) -> str:
        self.uploads.append(key)
        self.objects[key] = content
        return f"{self.base_url}/{key}"

    async def delete(self, key: str) -> None:
        self.deletes.append(key)
        if self.fail_deletes:
            raise BlobStorageError(message="Failed to delete image.", context={"key": key})
        self.objects.pop(key, None)

    async def health_check(self) -> bool:
        return True

    @property
    def call_count(self) -> int:
        return len(self.uploads) + len(self.deletes)


def make_result(row=None, rows=None, rowcount: Optional[int] = None) -> MagicMock:
    """Build a fake SQLAlchemy Result for scripting mock_db_session.execute."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = row
    result.scalars.return_value.all.return_value = rows or []
    result.rowcount = rowcount
    return result


@pytest.fixture
def mock_db_session():
    """
    Mock async database session.

    Usage:
        mock_db_session.execute.side_effect = [make_result(row=scholar), make_result(rowcount=1)]
        await service.update_scholar(mock_db_session, ...)
        assert mock_db_session.execute.await_count == 2
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def blob_store():
    return InMemoryBlobStore()


@pytest.fixture
def sample_image_bytes():
    """PNG signature plus an empty IHDR-sized tail; enough for storage tests."""
    return b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


@pytest_asyncio.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'registry.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def test_client(database, blob_store):
    """
    HTTP client for endpoint tests.

    ASGITransport does not run the lifespan, so the collaborators it would
    build are attached to app.state here.
    """
    app = create_app()
    app.state.database = database
    app.state.blob_store = blob_store
    app.state.scholar_service = ScholarService(blob_store)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
