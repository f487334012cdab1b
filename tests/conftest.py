"""Shared pytest fixtures for all tests."""

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from droplite.config import Settings
from droplite.database import create_engine, create_session_factory
from droplite.main import create_app
from droplite.models import Base
from droplite.services.blob_store import BlobStore
from droplite.services.file_service import FileService
from droplite.services.metadata_store import InMemoryMetadataStore
from droplite.services.validator import FileValidator


async def as_stream(data: bytes, chunk_size: int = 4):
    """Async chunk iterator over bytes, shaped like an upload body."""
    for i in range(0, len(data), chunk_size):
        yield data[i:i + chunk_size]


@pytest.fixture
def storage_root(tmp_path):
    """
    Directory used as blob store root. Not created up front.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to the uploads directory
    """
    return tmp_path / 'uploads'


@pytest.fixture
def blob_store(storage_root):
    return BlobStore(storage_root, chunk_size=4)


@pytest.fixture
def metadata_store():
    return InMemoryMetadataStore()


@pytest.fixture
def file_service(blob_store, metadata_store):
    """File service over a temp blob store and an in-process metadata store."""
    return FileService(FileValidator(), blob_store, metadata_store)


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """
    SQLite-backed session factory with the schema created.

    Yields:
        async_sessionmaker bound to a throwaway database file
    """
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'meta.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield create_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def make_settings(tmp_path, storage_root):
    """Build isolated Settings; keyword overrides win over the test defaults."""
    def _make(**overrides):
        values = {
            'DATABASE_URL': f"sqlite+aiosqlite:///{tmp_path / 'api.db'}",
            'FILE_STORAGE_PATH': str(storage_root),
            'CORS_ORIGINS': 'http://localhost:5173',
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)
    return _make


@pytest.fixture
def client(make_settings):
    """FastAPI test client with the lifespan (tables, upload dir) run."""
    with TestClient(create_app(make_settings())) as test_client:
        yield test_client
