"""Filesystem blob storage keyed by generated unique names."""
import logging
import re
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiofiles
import aiofiles.os

from droplite.exceptions import NotFoundError, StorageFault

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024

_SAFE_EXTENSION = re.compile(r"^\.[a-z0-9]{1,16}$")


class BlobReader:
    """Open blob handle. Iterating yields chunks and closes the handle at the end."""

    def __init__(self, handle, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self._handle = handle
        self._chunk_size = chunk_size
        self._closed = False

    async def read(self) -> bytes:
        """Read the remaining bytes in one go."""
        return await self._handle.read()

    async def aclose(self) -> None:
        if not self._closed:
            self._closed = True
            await self._handle.close()

    async def __aiter__(self) -> AsyncIterator[bytes]:
        try:
            while chunk := await self._handle.read(self._chunk_size):
                yield chunk
        finally:
            await self.aclose()

    async def __aenter__(self) -> "BlobReader":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


class BlobStore:
    """Stores raw file bytes under a single root directory.

    The root is the only namespace: callers never contribute path components,
    only the extension of the generated name is derived from their input.
    """

    def __init__(self, root: str | Path, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.root = Path(root).expanduser().resolve()
        self.chunk_size = chunk_size
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageFault(
                f"Could not create the directory where uploaded files will be stored: {self.root}. Error: {e}"
            ) from e
        logger.info("Blob store rooted at %s", self.root)

    @staticmethod
    def generate_name(name_hint: str | None) -> str:
        """Random token plus the hint's extension, e.g. '3f2a...9c.png'."""
        ext = Path(name_hint or "").suffix.lower()
        if not _SAFE_EXTENSION.match(ext):
            ext = ""
        return f"{uuid.uuid4().hex}{ext}"

    def path_for(self, stored_name: str) -> Path:
        if not stored_name or "/" in stored_name or "\\" in stored_name or ".." in stored_name:
            raise StorageFault(f"Invalid stored name: {stored_name!r}")
        return self.root / stored_name

    @asynccontextmanager
    async def put(self, name_hint: str | None):
        """Open a new blob for writing.

        Usage:
            async with blob_store.put("report.txt") as (stored_name, writer):
                await writer.write(b"...")
        """
        stored_name = self.generate_name(name_hint)
        path = self.path_for(stored_name)
        try:
            await aiofiles.os.makedirs(self.root, exist_ok=True)
            handle = await aiofiles.open(path, "wb")
        except OSError as e:
            raise StorageFault(f"Could not open {path} for writing. Error: {e}") from e

        try:
            yield stored_name, handle
        except OSError as e:
            raise StorageFault(f"Could not write file {stored_name}. Error: {e}") from e
        finally:
            await handle.close()

    async def open_for_read(self, stored_name: str) -> BlobReader:
        path = self.path_for(stored_name)
        try:
            handle = await aiofiles.open(path, "rb")
        except FileNotFoundError as e:
            raise NotFoundError(f"File not found {stored_name}") from e
        except OSError as e:
            raise StorageFault(f"Could not read file {stored_name}. Error: {e}") from e
        return BlobReader(handle, self.chunk_size)

    async def exists(self, stored_name: str) -> bool:
        return await aiofiles.os.path.isfile(self.path_for(stored_name))

    async def delete(self, stored_name: str) -> bool:
        """Remove a blob. Returns False if it was already absent."""
        path = self.path_for(stored_name)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageFault(f"Could not delete file {stored_name}. Error: {e}") from e
        return True
