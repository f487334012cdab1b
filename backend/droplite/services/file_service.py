"""File service: validation, blob storage and metadata composed into one API.

Store and delete are linear, best-effort sequences. There is no transaction
spanning the blob and the metadata row:

- a store that fails after the blob is written leaves an orphaned blob;
- a delete removes the metadata row even when the blob could not be removed.
"""
import logging
from typing import AsyncIterable

from droplite.exceptions import NotFoundError, StorageFault, ValidationError
from droplite.models.file_record import FileRecord
from droplite.services.blob_store import BlobReader, BlobStore
from droplite.services.media_types import DEFAULT_CONTENT_TYPE, resolve_view_content_type
from droplite.services.metadata_store import MetadataStore
from droplite.services.validator import FileValidator, check_content_type, sanitize_filename

logger = logging.getLogger(__name__)


class FileService:
    """Orchestrates FileValidator, BlobStore and a MetadataStore."""

    def __init__(self, validator: FileValidator, blob_store: BlobStore, metadata_store: MetadataStore):
        self.validator = validator
        self.blob_store = blob_store
        self.metadata_store = metadata_store

    async def store_file(
        self,
        filename: str | None,
        content_type: str | None,
        size_bytes: int,
        content: AsyncIterable[bytes],
    ) -> FileRecord:
        """Validate an upload, write its bytes and record its metadata."""
        if not self.validator.is_allowed_type(filename):
            raise ValidationError(
                "File type not allowed. Allowed types: " + ", ".join(self.validator.allowed_extensions)
            )
        if not self.validator.is_allowed_size(size_bytes):
            limit_mb = self.validator.max_size_bytes / (1024 * 1024)
            raise ValidationError(f"File size exceeds the maximum limit ({limit_mb:g}MB)")

        original_name = sanitize_filename(filename)
        content_type = check_content_type(content_type)

        async with self.blob_store.put(original_name) as (stored_name, writer):
            async for chunk in content:
                await writer.write(chunk)
        storage_path = str(self.blob_store.path_for(stored_name))
        logger.debug("Wrote %s (%d bytes) to %s", original_name, size_bytes, storage_path)

        record = FileRecord(
            stored_name=stored_name,
            original_name=original_name,
            storage_path=storage_path,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            size_bytes=size_bytes,
        )
        try:
            record = await self.metadata_store.insert(record)
        except StorageFault:
            logger.error("Metadata insert failed, blob %s is orphaned", stored_name)
            raise

        logger.info("Stored file %s as %s with id %s", original_name, stored_name, record.id)
        return record

    async def list_files(self) -> list[FileRecord]:
        return await self.metadata_store.get_all()

    async def get_file(self, file_id: int) -> FileRecord:
        return await self.metadata_store.get_by_id(file_id)

    async def open_for_download(self, file_id: int) -> tuple[FileRecord, BlobReader]:
        record = await self.metadata_store.get_by_id(file_id)
        try:
            reader = await self.blob_store.open_for_read(record.stored_name)
        except NotFoundError:
            logger.warning(
                "File %s exists in database but not on filesystem: %s", file_id, record.storage_path
            )
            raise
        return record, reader

    async def open_for_view(self, file_id: int) -> tuple[FileRecord, BlobReader, str]:
        record, reader = await self.open_for_download(file_id)
        return record, reader, resolve_view_content_type(record.original_name, record.content_type)

    async def delete_file(self, file_id: int) -> None:
        record = await self.metadata_store.get_by_id(file_id)

        try:
            removed = await self.blob_store.delete(record.stored_name)
        except StorageFault as e:
            logger.error("Failed to delete blob for file %s: %s", file_id, e)
        else:
            if not removed:
                logger.warning("File not found on filesystem during deletion: %s", record.storage_path)

        await self.metadata_store.delete(record)
        logger.info("Deleted file %s (%s)", file_id, record.original_name)
