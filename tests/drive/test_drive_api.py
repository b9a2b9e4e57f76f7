"""Tests for the Drive files API client."""

from __future__ import annotations

import json
import re

import httpx
import pytest
from pytest_httpx import HTTPXMock

from lessonsync.core.errors import ProtocolError, TransportError
from lessonsync.core.types import AccessToken, RemoteFile
from lessonsync.drive.api import DriveClient, build_duplicate_query, escape_query_value
from tests.helpers import FILES_URL, SESSION_URL, UPLOAD_URL

FILES_PATTERN = re.compile(re.escape(FILES_URL) + r"\?.*")
UPLOAD_PATTERN = re.compile(re.escape(UPLOAD_URL) + r"\?uploadType=resumable.*")


def parse_quoted_literals(query: str) -> list[str]:
    """Extract the single-quoted literals of a Drive query.

    Fails if a literal is left unterminated.
    """
    literals: list[str] = []
    current: list[str] | None = None
    chars = iter(query)
    for char in chars:
        if current is None:
            if char == "'":
                current = []
        elif char == "\\":
            current.append(next(chars))
        elif char == "'":
            literals.append("".join(current))
            current = None
        else:
            current.append(char)
    assert current is None, f"Unterminated literal in {query!r}"
    return literals


class TestQueryEscaping:
    """Tests for query string escaping."""

    def test_escape_quote(self) -> None:
        """Should escape single quotes."""
        assert escape_query_value("it's") == "it\\'s"

    def test_escape_backslash_first(self) -> None:
        """Should not double the escapes added for quotes."""
        assert escape_query_value("a\\'b") == "a\\\\\\'b"

    def test_query_shape(self) -> None:
        """Should match by name, parent and trashed flag."""
        assert build_duplicate_query("folder123", "2024.3.15") == (
            "name = '2024.3.15' and 'folder123' in parents and trashed = false"
        )

    @pytest.mark.parametrize(
        ("folder_id", "file_name"),
        [
            ("folder", "plain"),
            ("fol'der", "it's"),
            ("folder\\", "name\\"),
            ("'", "\\'"),
            ("a\\\\'b", "'' and trashed = true or name = '"),
            ("", "trailing backslash \\"),
        ],
    )
    def test_literals_round_trip(self, folder_id: str, file_name: str) -> None:
        """Should always produce terminated literals holding the raw values."""
        query = build_duplicate_query(folder_id, file_name)
        assert parse_quoted_literals(query) == [file_name, folder_id]


class TestFindExistingFile:
    """Tests for duplicate lookup."""

    def test_match_found(self, httpx_mock: HTTPXMock, client: httpx.Client, token: AccessToken) -> None:
        """Should return the first matching file."""
        httpx_mock.add_response(
            method="GET",
            url=FILES_PATTERN,
            json={"files": [{"id": "dup1", "name": "2024.3.15"}]},
        )

        existing = DriveClient(client, token).find_existing_file("folder123", "2024.3.15")

        assert existing == RemoteFile(id="dup1", name="2024.3.15")

        request = httpx_mock.get_request()
        assert request.headers["authorization"] == "Bearer access-123"
        params = request.url.params
        assert params["q"] == (
            "name = '2024.3.15' and 'folder123' in parents and trashed = false"
        )
        assert params["fields"] == "files(id,name)"
        assert params["pageSize"] == "1"
        assert params["supportsAllDrives"] == "true"
        assert params["includeItemsFromAllDrives"] == "true"

    def test_no_match(self, httpx_mock: HTTPXMock, client: httpx.Client, token: AccessToken) -> None:
        """Should return None when no file matches."""
        httpx_mock.add_response(method="GET", url=FILES_PATTERN, json={"files": []})

        assert DriveClient(client, token).find_existing_file("folder123", "x") is None

    def test_missing_files_field(self, httpx_mock: HTTPXMock, client: httpx.Client, token: AccessToken) -> None:
        """Should treat a missing files list as no match."""
        httpx_mock.add_response(method="GET", url=FILES_PATTERN, json={})

        assert DriveClient(client, token).find_existing_file("folder123", "x") is None

    def test_escapes_query(self, httpx_mock: HTTPXMock, client: httpx.Client, token: AccessToken) -> None:
        """Should send escaped values."""
        httpx_mock.add_response(method="GET", url=FILES_PATTERN, json={"files": []})

        DriveClient(client, token).find_existing_file("folder123", "it's")

        query = httpx_mock.get_request().url.params["q"]
        assert parse_quoted_literals(query) == ["it's", "folder123"]

    @pytest.mark.parametrize(("status", "retryable"), [(403, False), (429, True), (500, True)])
    def test_http_failure(
        self, httpx_mock: HTTPXMock, client: httpx.Client, token: AccessToken, status: int, retryable: bool
    ) -> None:
        """Should classify listing failures by status."""
        httpx_mock.add_response(method="GET", url=FILES_PATTERN, status_code=status)

        with pytest.raises(TransportError) as exc_info:
            DriveClient(client, token).find_existing_file("folder123", "x")

        assert exc_info.value.step == "find-existing-file"
        assert exc_info.value.status_code == status
        assert exc_info.value.retryable is retryable

    def test_network_error(self, httpx_mock: HTTPXMock, client: httpx.Client, token: AccessToken) -> None:
        """Should wrap network errors."""
        httpx_mock.add_exception(httpx.ReadTimeout("timed out"))

        with pytest.raises(TransportError) as exc_info:
            DriveClient(client, token).find_existing_file("folder123", "x")

        assert exc_info.value.retryable is False


def chunks() -> list[bytes]:
    return [b"abc", b"def"]


class TestUploadResumable:
    """Tests for the two-phase resumable upload."""

    def test_upload_success(self, httpx_mock: HTTPXMock, client: httpx.Client, token: AccessToken) -> None:
        """Should open a session and stream the bytes into it."""
        httpx_mock.add_response(
            method="POST",
            url=UPLOAD_PATTERN,
            headers={"Location": SESSION_URL},
        )
        received: list[bytes] = []

        def on_put(request: httpx.Request) -> httpx.Response:
            received.append(request.read())
            return httpx.Response(200, json={"id": "file1", "name": "2024.3.15"})

        httpx_mock.add_callback(on_put, method="PUT", url=SESSION_URL)

        uploaded = DriveClient(client, token).upload_resumable(
            folder_id="folder123",
            file_name="2024.3.15",
            stream=iter(chunks()),
            mime_type="video/mp4",
            content_length=6,
        )

        assert uploaded == RemoteFile(id="file1", name="2024.3.15")
        assert received == [b"abcdef"]

        init_request, put_request = httpx_mock.get_requests()
        assert init_request.url.params["uploadType"] == "resumable"
        assert init_request.url.params["supportsAllDrives"] == "true"
        assert json.loads(init_request.content) == {
            "name": "2024.3.15",
            "parents": ["folder123"],
        }
        assert init_request.headers["authorization"] == "Bearer access-123"
        assert init_request.headers["x-upload-content-type"] == "video/mp4"
        assert init_request.headers["x-upload-content-length"] == "6"
        assert put_request.headers["content-type"] == "video/mp4"
        assert put_request.headers["content-length"] == "6"
        assert put_request.headers["authorization"] == "Bearer access-123"

    def test_unknown_length(self, httpx_mock: HTTPXMock, client: httpx.Client, token: AccessToken) -> None:
        """Should omit length headers when the size is unknown."""
        httpx_mock.add_response(method="POST", url=UPLOAD_PATTERN, headers={"Location": SESSION_URL})
        httpx_mock.add_response(method="PUT", url=SESSION_URL, json={"id": "file1"})

        uploaded = DriveClient(client, token).upload_resumable(
            "folder123", "2024.3.15", iter(chunks()), "video/mp4"
        )

        assert uploaded.name == "2024.3.15"
        init_request, put_request = httpx_mock.get_requests()
        assert "x-upload-content-length" not in init_request.headers
        assert "content-length" not in put_request.headers

    def test_missing_location(self, httpx_mock: HTTPXMock, client: httpx.Client, token: AccessToken) -> None:
        """Should raise a fatal protocol error without a session location."""
        httpx_mock.add_response(method="POST", url=UPLOAD_PATTERN)

        with pytest.raises(ProtocolError) as exc_info:
            DriveClient(client, token).upload_resumable(
                "folder123", "2024.3.15", iter(chunks()), "video/mp4"
            )

        assert exc_info.value.step == "init-resumable-upload"
        assert exc_info.value.retryable is False

    @pytest.mark.parametrize(("status", "retryable"), [(401, False), (429, True), (502, True)])
    def test_initiate_failure(
        self, httpx_mock: HTTPXMock, client: httpx.Client, token: AccessToken, status: int, retryable: bool
    ) -> None:
        """Should classify initiation failures by status."""
        httpx_mock.add_response(method="POST", url=UPLOAD_PATTERN, status_code=status)

        with pytest.raises(TransportError) as exc_info:
            DriveClient(client, token).upload_resumable(
                "folder123", "2024.3.15", iter(chunks()), "video/mp4"
            )

        assert exc_info.value.step == "init-resumable-upload"
        assert exc_info.value.retryable is retryable

    def test_transfer_failure(self, httpx_mock: HTTPXMock, client: httpx.Client, token: AccessToken) -> None:
        """Should classify transfer failures by status."""
        httpx_mock.add_response(method="POST", url=UPLOAD_PATTERN, headers={"Location": SESSION_URL})
        httpx_mock.add_response(method="PUT", url=SESSION_URL, status_code=503, text="busy")

        with pytest.raises(TransportError) as exc_info:
            DriveClient(client, token).upload_resumable(
                "folder123", "2024.3.15", iter(chunks()), "video/mp4"
            )

        assert exc_info.value.step == "put-resumable-upload"
        assert exc_info.value.status_code == 503
        assert exc_info.value.retryable is True
        assert "busy" in exc_info.value.message

    def test_missing_id_on_success(self, httpx_mock: HTTPXMock, client: httpx.Client, token: AccessToken) -> None:
        """Should raise a fatal protocol error when the id is absent."""
        httpx_mock.add_response(method="POST", url=UPLOAD_PATTERN, headers={"Location": SESSION_URL})
        httpx_mock.add_response(method="PUT", url=SESSION_URL, json={"name": "2024.3.15"})

        with pytest.raises(ProtocolError) as exc_info:
            DriveClient(client, token).upload_resumable(
                "folder123", "2024.3.15", iter(chunks()), "video/mp4"
            )

        assert exc_info.value.step == "put-resumable-upload"

    def test_invalid_json_response(self, httpx_mock: HTTPXMock, client: httpx.Client, token: AccessToken) -> None:
        """Should wrap decoding failures as non-retryable transport errors."""
        httpx_mock.add_response(method="POST", url=UPLOAD_PATTERN, headers={"Location": SESSION_URL})
        httpx_mock.add_response(method="PUT", url=SESSION_URL, text="not json")

        with pytest.raises(TransportError) as exc_info:
            DriveClient(client, token).upload_resumable(
                "folder123", "2024.3.15", iter(chunks()), "video/mp4"
            )

        assert exc_info.value.step == "upload-file-resumable"
        assert exc_info.value.retryable is False
