"""Streamed download of the source asset.

The response body is exposed as an iterator of network chunks and is
never buffered in memory.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass

import httpx

from lessonsync.core.errors import TransportError, describe_exception
from lessonsync.core.types import AssetDescriptor

logger = logging.getLogger(__name__)

STEP = "download-video"
DEFAULT_MIME_TYPE = "video/mp4"
DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1 MiB

# Statuses that are successful but carry no body
_NO_BODY_STATUSES = (204, 205)


@dataclass
class DownloadedMedia:
    """An open download.

    Attributes:
        stream: Iterator over the body bytes; valid while the download is open.
            Read failures are raised as TransportError on the download step.
        mime_type: Media type of the body.
        content_length: Size in bytes, or None when unknown.
    """

    stream: Iterator[bytes]
    mime_type: str
    content_length: int | None = None


def parse_content_length(value: str | None) -> int | None:
    """Parse a content-length header.

    Returns:
        The length, or None if missing, non-numeric or not positive.
    """
    if not value:
        return None
    try:
        parsed = int(value.strip())
    except ValueError:
        return None
    return parsed if parsed > 0 else None


def _read_chunks(response: httpx.Response, chunk_size: int) -> Iterator[bytes]:
    try:
        yield from response.iter_bytes(chunk_size)
    except httpx.HTTPError as e:
        raise TransportError(
            STEP, f"Source stream interrupted: {describe_exception(e)}"
        ) from e


def parse_mime_type(value: str | None) -> str:
    """Get the media type of a content-type header, without parameters."""
    mime_type = (value or "").split(";")[0].strip()
    return mime_type or DEFAULT_MIME_TYPE


class StreamDownloader:
    """Opens the source asset as a byte stream."""

    def __init__(
        self, client: httpx.Client, chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> None:
        """Initialize the downloader.

        Args:
            client: HTTP client.
            chunk_size: Size of the chunks yielded by the stream.
        """
        self._client = client
        self._chunk_size = chunk_size

    @contextmanager
    def open(self, asset: AssetDescriptor) -> Iterator[DownloadedMedia]:
        """Open a download of the asset.

        The response is closed when the context exits.

        Args:
            asset: Asset to download; its referer and cookies are sent.

        Yields:
            The open download.

        Raises:
            TransportError: If the request fails, returns an error status
                (retryable for 429 and 5xx) or has no body.
        """
        headers = {"Referer": asset.referer_url}
        if asset.cookie_header:
            headers["Cookie"] = asset.cookie_header

        with ExitStack() as stack:
            try:
                response = stack.enter_context(
                    self._client.stream("GET", asset.source_url, headers=headers)
                )
                if not response.is_success:
                    response.read()
                    raise TransportError.from_response(
                        STEP, "Video request failed", response
                    )
            except httpx.HTTPError as e:
                raise TransportError(STEP, describe_exception(e)) from e

            if response.status_code in _NO_BODY_STATUSES:
                raise TransportError(STEP, "Video response has no body stream")

            media = DownloadedMedia(
                stream=_read_chunks(response, self._chunk_size),
                mime_type=parse_mime_type(response.headers.get("content-type")),
                content_length=parse_content_length(
                    response.headers.get("content-length")
                ),
            )
            logger.info(
                f"[{STEP}] Opened source stream "
                f"(type={media.mime_type}, length={media.content_length})"
            )
            yield media
