"""FileRecord model - file metadata (actual bytes live in the blob store)."""
from sqlalchemy import String, BigInteger
from sqlalchemy.orm import Mapped, mapped_column
from droplite.models.base import Base, CreatedAtMixin

ORIGINAL_NAME_MAX_LENGTH = 500
CONTENT_TYPE_MAX_LENGTH = 255


class FileRecord(Base, CreatedAtMixin):
    __tablename__ = "files"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    stored_name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    original_name: Mapped[str] = mapped_column(String(ORIGINAL_NAME_MAX_LENGTH), nullable=False)
    storage_path: Mapped[str] = mapped_column(String(1000), nullable=False)
    content_type: Mapped[str] = mapped_column(String(CONTENT_TYPE_MAX_LENGTH), nullable=False)
    size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False)

    def __repr__(self) -> str:
        return f"<FileRecord id={self.id} stored_name={self.stored_name!r}>"
