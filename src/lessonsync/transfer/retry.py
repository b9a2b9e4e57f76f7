"""Retry logic with exponential backoff for the download+upload unit.

This module provides:
- retry_with_backoff: Retry a callable on retryable TransferErrors
- RetryingTransfer: Download and upload an asset as one retried unit
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from lessonsync.core.errors import TransferError
from lessonsync.core.types import AssetDescriptor, RemoteFile
from lessonsync.drive.api import DriveClient
from lessonsync.transfer.download import StreamDownloader

logger = logging.getLogger(__name__)

# Default retry configuration
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_INITIAL_BACKOFF = 1.0  # seconds
DEFAULT_BACKOFF_MULTIPLIER = 2.0

T = TypeVar("T")


def backoff_delay(
    attempt: int,
    initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
    backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER,
) -> float:
    """Get the wait before the attempt following `attempt` (1-based)."""
    return initial_backoff * backoff_multiplier ** (attempt - 1)


def retry_with_backoff(
    func: Callable[[int], T],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
    backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Execute a function with exponential backoff retry.

    Only TransferErrors flagged retryable are retried. Anything else is
    raised immediately, without sleeping.

    Args:
        func: Function to execute; receives the 1-based attempt number.
        max_attempts: Total number of attempts, including the first.
        initial_backoff: Wait before the second attempt, in seconds.
        backoff_multiplier: Multiplier applied for each further attempt.
        sleep: Function used to wait (injectable for tests).

    Returns:
        Result of the function.

    Raises:
        TransferError: The error of the last attempt.
    """
    attempt = 1
    while True:
        try:
            return func(attempt)
        except TransferError as e:
            if not e.retryable:
                raise
            if attempt >= max_attempts:
                logger.error(f"[{e.step}] All {max_attempts} attempts failed: {e.message}")
                raise

            delay = backoff_delay(attempt, initial_backoff, backoff_multiplier)
            logger.warning(
                f"[{e.step}] Attempt {attempt}/{max_attempts} failed "
                f"(status={e.status_code}): {e.message}. Retrying in {delay:.1f}s..."
            )
            sleep(delay)
            attempt += 1


class RetryingTransfer:
    """Downloads an asset and uploads it as one retryable unit.

    A failure in either phase discards the attempt: the next attempt
    downloads again from the source and opens a new upload session.
    """

    def __init__(
        self,
        downloader: StreamDownloader,
        drive: DriveClient,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._downloader = downloader
        self._drive = drive
        self._max_attempts = max_attempts
        self._initial_backoff = initial_backoff
        self._sleep = sleep

    def run(self, asset: AssetDescriptor, folder_id: str, file_name: str) -> RemoteFile:
        """Transfer the asset into the folder, retrying transient failures.

        Raises:
            TransferError: The originating error when the failure is not
                retryable or all attempts are exhausted.
        """

        def attempt_transfer(attempt: int) -> RemoteFile:
            logger.info(
                f"[upload] Starting upload attempt {attempt}/{self._max_attempts}"
            )
            with self._downloader.open(asset) as media:
                return self._drive.upload_resumable(
                    folder_id=folder_id,
                    file_name=file_name,
                    stream=media.stream,
                    mime_type=media.mime_type,
                    content_length=media.content_length,
                )

        return retry_with_backoff(
            attempt_transfer,
            max_attempts=self._max_attempts,
            initial_backoff=self._initial_backoff,
            sleep=self._sleep,
        )
