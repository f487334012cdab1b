"""File metadata persistence.

``MetadataStore`` is the capability the file service depends on. The SQL
adapter is what the application runs with; the in-process adapter keeps
records in a dict and is handy for tests and throwaway setups.
"""
import asyncio
import itertools
import logging
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from droplite.exceptions import NotFoundError, StorageFault
from droplite.models.file_record import FileRecord

logger = logging.getLogger(__name__)


class MetadataStore(Protocol):
    async def insert(self, record: FileRecord) -> FileRecord: ...

    async def get_by_id(self, file_id: int) -> FileRecord: ...

    async def get_all(self) -> list[FileRecord]: ...

    async def delete(self, record: FileRecord) -> None: ...


class SqlAlchemyMetadataStore:
    """Metadata rows in the ``files`` table, one session per call."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def insert(self, record: FileRecord) -> FileRecord:
        try:
            async with self._session_factory() as db:
                db.add(record)
                await db.commit()
                await db.refresh(record)
        except SQLAlchemyError as e:
            raise StorageFault(f"Could not save metadata for {record.stored_name}. Error: {e}") from e
        return record

    async def get_by_id(self, file_id: int) -> FileRecord:
        try:
            async with self._session_factory() as db:
                result = await db.execute(
                    select(FileRecord).where(FileRecord.id == file_id)
                )
                record = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageFault(f"Could not load file {file_id}. Error: {e}") from e
        if not record:
            raise NotFoundError(f"File not found with id {file_id}")
        return record

    async def get_all(self) -> list[FileRecord]:
        try:
            async with self._session_factory() as db:
                result = await db.execute(select(FileRecord).order_by(FileRecord.id))
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StorageFault(f"Could not list files. Error: {e}") from e

    async def delete(self, record: FileRecord) -> None:
        try:
            async with self._session_factory() as db:
                await db.execute(delete(FileRecord).where(FileRecord.id == record.id))
                await db.commit()
        except SQLAlchemyError as e:
            raise StorageFault(f"Could not delete metadata for file {record.id}. Error: {e}") from e


class InMemoryMetadataStore:
    """Process-local metadata store. Ids start at 1 and are never reused."""

    def __init__(self):
        self._records: dict[int, FileRecord] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    async def insert(self, record: FileRecord) -> FileRecord:
        async with self._lock:
            record.id = next(self._ids)
            record.created_at = datetime.now(timezone.utc)
            self._records[record.id] = record
        return record

    async def get_by_id(self, file_id: int) -> FileRecord:
        record = self._records.get(file_id)
        if record is None:
            raise NotFoundError(f"File not found with id {file_id}")
        return record

    async def get_all(self) -> list[FileRecord]:
        return [self._records[k] for k in sorted(self._records)]

    async def delete(self, record: FileRecord) -> None:
        async with self._lock:
            self._records.pop(record.id, None)
