"""Content type resolution for inline viewing."""
from droplite.services.validator import get_extension

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Text-like formats are served with an explicit charset so browsers render them.
VIEW_CONTENT_TYPES = {
    "txt": "text/plain;charset=utf-8",
    "json": "application/json;charset=utf-8",
    "csv": "text/csv;charset=utf-8",
    "xml": "application/xml;charset=utf-8",
    "html": "text/html;charset=utf-8",
    "css": "text/css;charset=utf-8",
    "js": "application/javascript;charset=utf-8",
}


def resolve_view_content_type(original_name: str, stored_content_type: str | None) -> str:
    """Pick the content type to serve a file inline with."""
    resolved = VIEW_CONTENT_TYPES.get(get_extension(original_name))
    if resolved:
        return resolved
    return stored_content_type or DEFAULT_CONTENT_TYPE
