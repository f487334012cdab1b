"""Import all models so SQLAlchemy metadata knows about them."""
from droplite.models.base import Base
from droplite.models.file_record import FileRecord

__all__ = ["Base", "FileRecord"]
