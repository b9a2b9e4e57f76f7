"""HTTP client for the Google Drive v3 API.

This module provides:
- DriveClient: Duplicate lookup and resumable upload into a folder
- escape_query_value / build_duplicate_query: Drive query-string helpers
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

import httpx

from lessonsync.core.errors import (
    ProtocolError,
    TransferError,
    TransportError,
    describe_exception,
)
from lessonsync.core.types import AccessToken, RemoteFile

logger = logging.getLogger(__name__)

FILES_URL = "https://www.googleapis.com/drive/v3/files"
UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"


def escape_query_value(value: str) -> str:
    """Escape a value for use inside a quoted Drive query literal.

    Backslashes are escaped first so the escapes added for quotes
    are not doubled.
    """
    return value.replace("\\", "\\\\").replace("'", "\\'")


def build_duplicate_query(folder_id: str, file_name: str) -> str:
    """Build the query matching a non-trashed file by exact name in a folder."""
    return (
        f"name = '{escape_query_value(file_name)}' "
        f"and '{escape_query_value(folder_id)}' in parents "
        "and trashed = false"
    )


class DriveClient:
    """HTTP client for the Drive files API.

    The access token is sent per request so the shared HTTP client can
    also be used for requests to other hosts.
    """

    def __init__(
        self,
        client: httpx.Client,
        token: AccessToken,
        files_url: str = FILES_URL,
        upload_url: str = UPLOAD_URL,
    ) -> None:
        """Initialize the Drive client.

        Args:
            client: HTTP client.
            token: Access token for the current run.
            files_url: Files listing endpoint.
            upload_url: Upload initiation endpoint.
        """
        self._client = client
        self._token = token
        self._files_url = files_url
        self._upload_url = upload_url

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token.value}"}

    def _check_response(
        self, response: httpx.Response, step: str, action: str
    ) -> httpx.Response:
        """Raise a classified error for non-success responses."""
        if not response.is_success:
            response.read()
            raise TransportError.from_response(step, action, response)
        return response

    # === Duplicate lookup ===

    def find_existing_file(self, folder_id: str, file_name: str) -> RemoteFile | None:
        """Find a non-trashed file named exactly file_name in a folder.

        Args:
            folder_id: Destination folder id.
            file_name: Exact file name to look for.

        Returns:
            The first match, or None if no file has that name.

        Raises:
            TransportError: If the listing request fails.
        """
        step = "find-existing-file"
        try:
            response = self._check_response(
                self._client.get(
                    self._files_url,
                    params={
                        "q": build_duplicate_query(folder_id, file_name),
                        "fields": "files(id,name)",
                        "pageSize": "1",
                        "supportsAllDrives": "true",
                        "includeItemsFromAllDrives": "true",
                    },
                    headers=self._auth_headers(),
                ),
                step,
                "Failed listing Drive files",
            )
            files: list[dict[str, Any]] = response.json().get("files") or []
            existing = RemoteFile.from_dict(files[0]) if files else None
        except TransferError:
            raise
        except (httpx.HTTPError, ValueError, KeyError, AttributeError) as e:
            raise TransportError(step, describe_exception(e)) from e

        logger.info(
            f"[{step}] Duplicate lookup for {file_name!r}: "
            f"{'found ' + existing.id if existing else 'none'}"
        )
        return existing

    # === Resumable upload ===

    def upload_resumable(
        self,
        folder_id: str,
        file_name: str,
        stream: Iterable[bytes],
        mime_type: str,
        content_length: int | None = None,
    ) -> RemoteFile:
        """Upload a byte stream with the two-phase resumable protocol.

        A new session is opened on every call; sessions are never resumed.

        Args:
            folder_id: Destination folder id.
            file_name: Name of the created file.
            stream: File content, consumed once while uploading.
            mime_type: Content type of the file.
            content_length: Size in bytes, if known.

        Returns:
            The created file.

        Raises:
            TransportError: If a request fails (retryable for 429 and 5xx).
            ProtocolError: If a success response lacks the session location
                or the file id.
            TransferError: Classified errors raised by the stream pass through
                unchanged.
        """
        try:
            session_url = self._initiate_upload(
                folder_id, file_name, mime_type, content_length
            )
            uploaded = self._transfer(
                session_url, file_name, stream, mime_type, content_length
            )
        except TransferError:
            raise
        except (httpx.HTTPError, ValueError) as e:
            raise TransportError("upload-file-resumable", describe_exception(e)) from e

        logger.info(f"[put-resumable-upload] Upload completed: {uploaded.name} ({uploaded.id})")
        return uploaded

    def _initiate_upload(
        self,
        folder_id: str,
        file_name: str,
        mime_type: str,
        content_length: int | None,
    ) -> str:
        """Open an upload session and return its URL."""
        step = "init-resumable-upload"
        headers = {
            **self._auth_headers(),
            "X-Upload-Content-Type": mime_type,
        }
        if content_length is not None:
            headers["X-Upload-Content-Length"] = str(content_length)

        response = self._check_response(
            self._client.post(
                self._upload_url,
                params={"uploadType": "resumable", "supportsAllDrives": "true"},
                json={"name": file_name, "parents": [folder_id]},
                headers=headers,
            ),
            step,
            "Failed to start resumable upload",
        )

        session_url = response.headers.get("location")
        if not session_url:
            raise ProtocolError(
                step, "Resumable upload response does not include location header"
            )
        logger.debug(f"[{step}] Opened upload session for {file_name!r}")
        return session_url

    def _transfer(
        self,
        session_url: str,
        file_name: str,
        stream: Iterable[bytes],
        mime_type: str,
        content_length: int | None,
    ) -> RemoteFile:
        """Send the file content to an upload session."""
        step = "put-resumable-upload"
        headers = {
            **self._auth_headers(),
            "Content-Type": mime_type,
        }
        if content_length is not None:
            headers["Content-Length"] = str(content_length)

        response = self._check_response(
            self._client.put(session_url, content=stream, headers=headers),
            step,
            "Failed uploading media bytes",
        )

        payload = response.json()
        if not isinstance(payload, dict) or not payload.get("id"):
            raise ProtocolError(step, "Upload response does not include file id")
        return RemoteFile.from_dict(payload, default_name=file_name)
