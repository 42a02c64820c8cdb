"""
Storage collaborators: the catalog text file and the media directory.

Both are read-only from the server's point of view and hold no mutable
state, so one instance of each is shared by every handler thread.
"""

from .catalog import (
    Catalog,
    CatalogEntry,
    format_file_name,
    format_listing_entry,
    parse_catalog_line,
)
from .media import MediaStore

__all__ = [
    "Catalog",
    "CatalogEntry",
    "MediaStore",
    "format_file_name",
    "format_listing_entry",
    "parse_catalog_line",
]
