"""Error taxonomy for the file storage core.

Every failure raised by the core is a ``FileServiceError`` tagged with an
``ErrorKind``. The HTTP layer maps the kind to a status code and a short
machine-readable code; the core itself never deals with HTTP.
"""
from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    STORAGE = "STORAGE_FAULT"


class FileServiceError(Exception):
    """
    Base exception class for all file storage errors.
    """
    kind: ErrorKind = ErrorKind.STORAGE
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(FileServiceError):
    """
    Raised when an upload is rejected: disallowed extension, oversized
    payload or unsafe filename.
    """
    kind = ErrorKind.VALIDATION
    status_code = 400


class NotFoundError(FileServiceError):
    """
    Raised for an unknown file id, or a record whose blob is gone.
    """
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class StorageFault(FileServiceError):
    """
    Raised when the filesystem or the metadata database fails.
    """
    kind = ErrorKind.STORAGE
    status_code = 500
