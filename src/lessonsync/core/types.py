"""Data model shared by the transfer steps.

This module provides:
- SiteCredentials, OAuthCredentials: Identity material (never logged)
- AssetDescriptor: The media asset produced by the locator
- AccessToken: Short-lived bearer token
- RemoteFile: An object in the destination folder
- TransferStatus, TransferOutcome: Terminal result of one run
- derive_canonical_name: Destination filename from an asset label
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Lesson labels carry a date like "2024.3.15"; it becomes the filename
DATE_PATTERN = re.compile(r"\d{4}\.\d{1,2}\.\d{1,2}")

# Fallback name when the label holds no date.
# Distinct assets sharing it are reported as duplicates of each other.
UNKNOWN_CANONICAL_NAME = "unknown"


def derive_canonical_name(label: str) -> str:
    """Get the destination filename for an asset label.

    Args:
        label: Human readable asset label.

    Returns:
        First date found in the label, or UNKNOWN_CANONICAL_NAME.
    """
    match = DATE_PATTERN.search(label)
    return match.group(0) if match else UNKNOWN_CANONICAL_NAME


@dataclass(frozen=True)
class SiteCredentials:
    """Login for the source site."""

    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class OAuthCredentials:
    """OAuth client and refresh token for the destination store."""

    client_id: str
    client_secret: str = field(repr=False)
    refresh_token: str = field(repr=False)


@dataclass(frozen=True)
class AssetDescriptor:
    """A playable media asset located on the source site.

    Attributes:
        label: Human readable label of the asset.
        canonical_name: Destination filename derived from the label.
        source_url: Absolute URL of the media file.
        referer_url: Page the media is embedded in.
        cookie_header: Cookie header required to fetch the media (may be empty).
    """

    label: str
    canonical_name: str
    source_url: str
    referer_url: str
    cookie_header: str = field(default="", repr=False)

    @classmethod
    def from_label(
        cls,
        label: str,
        source_url: str,
        referer_url: str,
        cookie_header: str = "",
    ) -> AssetDescriptor:
        """Create a descriptor, deriving canonical_name from the label."""
        return cls(
            label=label,
            canonical_name=derive_canonical_name(label),
            source_url=source_url,
            referer_url=referer_url,
            cookie_header=cookie_header,
        )


@dataclass(frozen=True)
class AccessToken:
    """Bearer token valid for the current run only."""

    value: str = field(repr=False)
    expires_in: int | None = None


@dataclass(frozen=True)
class RemoteFile:
    """File metadata from the destination store."""

    id: str
    name: str

    @classmethod
    def from_dict(cls, data: dict[str, Any], default_name: str = "") -> RemoteFile:
        """Create from API response dictionary."""
        return cls(id=data["id"], name=data.get("name") or default_name)


class TransferStatus(str, Enum):
    """How a run ended when it did not fail."""

    UPLOADED = "uploaded"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class TransferOutcome:
    """Result of one workflow run."""

    status: TransferStatus
    canonical_name: str
    label: str
    remote_file_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "status": self.status.value,
            "canonical_name": self.canonical_name,
            "label": self.label,
            "remote_file_id": self.remote_file_id,
        }
