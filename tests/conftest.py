"""Shared fixtures for LessonSync tests."""

from __future__ import annotations

from collections.abc import Generator

import httpx
import pytest

from lessonsync.core.types import AccessToken, AssetDescriptor
from tests.helpers import SleepRecorder, make_asset


@pytest.fixture
def asset() -> AssetDescriptor:
    """Asset descriptor for a dated lesson."""
    return make_asset()


@pytest.fixture
def token() -> AccessToken:
    """Access token."""
    return AccessToken(value="access-123", expires_in=3599)


@pytest.fixture
def sleep() -> SleepRecorder:
    """Sleep recorder."""
    return SleepRecorder()


@pytest.fixture
def client() -> Generator[httpx.Client, None, None]:
    """HTTP client (requests are served by httpx_mock)."""
    with httpx.Client() as http_client:
        yield http_client
