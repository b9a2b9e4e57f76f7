"""Google Drive access - OAuth token exchange and files API client."""

from lessonsync.drive.api import (
    DriveClient,
    build_duplicate_query,
    escape_query_value,
)
from lessonsync.drive.auth import TokenProvider

__all__ = [
    "DriveClient",
    "TokenProvider",
    "build_duplicate_query",
    "escape_query_value",
]
