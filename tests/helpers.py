"""Test doubles and constants shared across test modules."""

from __future__ import annotations

from collections.abc import Iterator

import httpx

from lessonsync.core.errors import AutomationError
from lessonsync.core.types import AssetDescriptor, SiteCredentials

VIDEO_URL = "https://cdn.example.com/records/lesson.mp4"
REFERER_URL = "https://helpspeaking.kr/record/42"
TOKEN_URL = "https://oauth2.googleapis.com/token"
FILES_URL = "https://www.googleapis.com/drive/v3/files"
UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"
SESSION_URL = "https://www.googleapis.com/upload/drive/v3/files?upload_id=session"


def make_environ(**overrides: str) -> dict[str, str]:
    """Create a complete environment for testing."""
    environ = {
        "HELPSPEAKING_USERNAME": "student",
        "HELPSPEAKING_PASSWORD": "secret-password",
        "GOOGLE_OAUTH_CLIENT_ID": "client-id",
        "GOOGLE_OAUTH_CLIENT_SECRET": "client-secret",
        "GOOGLE_OAUTH_REFRESH_TOKEN": "refresh-token",
        "GOOGLE_DRIVE_FOLDER_ID": "folder123",
    }
    environ.update(overrides)
    return environ


def make_asset(label: str = "2024.3.15 Lesson") -> AssetDescriptor:
    """Create an asset descriptor for a lesson label."""
    return AssetDescriptor.from_label(
        label,
        source_url=VIDEO_URL,
        referer_url=REFERER_URL,
        cookie_header="session=abc; token=xyz",
    )


class FakeLocator:
    """Asset locator returning a fixed descriptor or raising an error."""

    def __init__(
        self,
        asset: AssetDescriptor | None = None,
        error: AutomationError | None = None,
    ) -> None:
        self.asset = asset
        self.error = error
        self.calls: list[SiteCredentials] = []

    def locate(self, credentials: SiteCredentials) -> AssetDescriptor:
        self.calls.append(credentials)
        if self.error is not None:
            raise self.error
        assert self.asset is not None
        return self.asset


class SleepRecorder:
    """Records backoff waits instead of sleeping."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class InterruptedStream(httpx.SyncByteStream):
    """Response body whose connection drops after the first chunk."""

    def __iter__(self) -> Iterator[bytes]:
        yield b"partial"
        raise httpx.ReadError("connection reset by peer")


def interrupted_download(request: httpx.Request) -> httpx.Response:
    """Serve a video response that fails partway through the body."""
    return httpx.Response(200, headers={"Content-Type": "video/mp4"}, stream=InterruptedStream())
