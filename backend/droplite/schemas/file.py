"""File response schemas."""
from datetime import datetime
from typing import Optional

from droplite.schemas.base import CamelORMModel


class FileResponse(CamelORMModel):
    id: int
    stored_name: str
    original_name: str
    storage_path: str
    content_type: str
    size_bytes: int
    created_at: datetime
    download_url: Optional[str] = None
    view_url: Optional[str] = None
