"""Top-level sequencing of one transfer run.

A run loads the configuration, locates the asset, requests one access
token, checks the destination folder for a file with the same name and
either skips or performs the retried download+upload.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

import httpx

from lessonsync.core.config import AppConfig, load_config
from lessonsync.core.errors import TransferError, WorkflowError
from lessonsync.core.types import (
    AssetDescriptor,
    TransferOutcome,
    TransferStatus,
)
from lessonsync.drive.api import DriveClient
from lessonsync.drive.auth import TokenProvider
from lessonsync.transfer.download import StreamDownloader
from lessonsync.transfer.retry import (
    DEFAULT_INITIAL_BACKOFF,
    DEFAULT_MAX_ATTEMPTS,
    RetryingTransfer,
)

if TYPE_CHECKING:
    from lessonsync.locator.browser import AssetLocator

logger = logging.getLogger(__name__)


class TransferWorkflow:
    """Runs one transfer of the latest asset.

    Exactly one of skip or upload happens per successful run. Any step
    failure is raised as a WorkflowError and no outcome is returned.
    Overlapping runs are not mutually excluded.
    """

    def __init__(
        self,
        environ: Mapping[str, str],
        locator: AssetLocator | None = None,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
    ) -> None:
        """Initialize the workflow.

        Args:
            environ: Environment to load the configuration from.
            locator: Asset locator; a browser locator is built from the
                configuration when omitted.
            client: HTTP client; one is created (and closed) per run when omitted.
            sleep: Function used for backoff waits.
            max_attempts: Total download+upload attempts.
            initial_backoff: Wait before the second attempt, in seconds.
        """
        self._environ = environ
        self._locator = locator
        self._client = client
        self._sleep = sleep
        self._max_attempts = max_attempts
        self._initial_backoff = initial_backoff

    def run(self) -> TransferOutcome:
        """Execute the workflow.

        Returns:
            The outcome (uploaded or skipped).

        Raises:
            WorkflowError: Wrapping the classified error of the failing step.
        """
        try:
            config = load_config(self._environ)
            logger.info("[load-config] Loaded required settings")

            asset = self._build_locator(config).locate(config.site_credentials)
            logger.info(
                f"[locate-asset] Located {asset.label!r} "
                f"as {asset.canonical_name!r} ({asset.source_url})"
            )

            if self._client is not None:
                return self._transfer(config, asset, self._client)
            with httpx.Client(
                timeout=config.http_timeout, follow_redirects=True
            ) as client:
                return self._transfer(config, asset, client)
        except TransferError as e:
            logger.error(f"[{e.step}] Transfer failed: {e.message}")
            raise WorkflowError(e) from e

    def _build_locator(self, config: AppConfig) -> AssetLocator:
        if self._locator is not None:
            return self._locator

        from lessonsync.locator.browser import BrowserAssetLocator

        return BrowserAssetLocator(
            site_url=config.site_url,
            headless=config.headless,
            timeout=config.browser_timeout,
        )

    def _transfer(
        self, config: AppConfig, asset: AssetDescriptor, client: httpx.Client
    ) -> TransferOutcome:
        token = TokenProvider(client).request_access_token(config.oauth_credentials)
        drive = DriveClient(client, token)

        duplicate = drive.find_existing_file(config.drive_folder_id, asset.canonical_name)
        if duplicate is not None:
            logger.info(
                f"[check-duplicate] {asset.canonical_name!r} already uploaded "
                f"as {duplicate.id}, skipping"
            )
            return TransferOutcome(
                status=TransferStatus.SKIPPED,
                canonical_name=asset.canonical_name,
                label=asset.label,
                remote_file_id=duplicate.id,
            )

        transfer = RetryingTransfer(
            StreamDownloader(client),
            drive,
            max_attempts=self._max_attempts,
            initial_backoff=self._initial_backoff,
            sleep=self._sleep,
        )
        uploaded = transfer.run(asset, config.drive_folder_id, asset.canonical_name)
        return TransferOutcome(
            status=TransferStatus.UPLOADED,
            canonical_name=asset.canonical_name,
            label=asset.label,
            remote_file_id=uploaded.id,
        )


def run_transfer(
    environ: Mapping[str, str],
    locator: AssetLocator | None = None,
    client: httpx.Client | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> TransferOutcome:
    """Run one transfer workflow. See TransferWorkflow."""
    return TransferWorkflow(environ, locator=locator, client=client, sleep=sleep).run()
