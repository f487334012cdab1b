"""File storage core: validation, blob storage, metadata and the file service."""
