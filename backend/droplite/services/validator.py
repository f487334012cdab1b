"""Upload validation: extension allow-list, size limit and filename sanitizing."""
import logging
from pathlib import PurePosixPath
from typing import Iterable

from droplite.exceptions import ValidationError
from droplite.models.file_record import CONTENT_TYPE_MAX_LENGTH, ORIGINAL_NAME_MAX_LENGTH

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_EXTENSIONS = ("txt", "jpg", "jpeg", "png", "json")
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MiB


def get_extension(filename: str | None) -> str:
    """Lowercased text after the last '.', or '' when there is none."""
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


class FileValidator:
    """Pure predicates over an incoming upload. Callers decide how to report rejection."""

    def __init__(
        self,
        allowed_extensions: Iterable[str] = DEFAULT_ALLOWED_EXTENSIONS,
        max_size_bytes: int = DEFAULT_MAX_FILE_SIZE,
    ):
        self._allowed = frozenset(e.lower().lstrip(".") for e in allowed_extensions)
        self.max_size_bytes = max_size_bytes

    @property
    def allowed_extensions(self) -> list[str]:
        return sorted(self._allowed)

    def is_allowed_type(self, filename: str | None) -> bool:
        extension = get_extension(filename)
        if extension not in self._allowed:
            logger.debug("Extension %r of %r not in allow-list", extension, filename)
            return False
        return True

    def is_allowed_size(self, size_bytes: int) -> bool:
        if size_bytes > self.max_size_bytes:
            logger.debug("Size %d exceeds maximum %d", size_bytes, self.max_size_bytes)
            return False
        return True


def sanitize_filename(filename: str) -> str:
    """Strip directory components from a client-supplied filename.

    Both '/' and '\\' count as separators, so 'C:\\tmp\\a.txt' and
    '../../a.txt' both become 'a.txt'. Raises ValidationError when nothing
    usable is left, the name still contains '..', holds control
    characters or does not fit the original_name column.
    """
    name = PurePosixPath(filename.replace("\\", "/")).name.strip()
    if not name or ".." in name:
        raise ValidationError(f"Filename contains invalid path sequence: {filename!r}")
    if _has_control_chars(name):
        raise ValidationError(f"Filename contains control characters: {filename!r}")
    if len(name) > ORIGINAL_NAME_MAX_LENGTH:
        raise ValidationError(f"Filename exceeds {ORIGINAL_NAME_MAX_LENGTH} characters")
    return name


def check_content_type(content_type: str | None) -> str | None:
    """Reject declared content types that cannot be stored as given."""
    if content_type is None:
        return None
    if _has_control_chars(content_type) or len(content_type) > CONTENT_TYPE_MAX_LENGTH:
        raise ValidationError(
            f"Content type must be at most {CONTENT_TYPE_MAX_LENGTH} printable characters"
        )
    return content_type


def _has_control_chars(value: str) -> bool:
    return any(ord(c) < 32 or ord(c) == 127 for c in value)
