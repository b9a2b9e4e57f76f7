"""Transfer operations for moving the asset into the destination folder.

Architecture:
    load config → locate asset → access token → duplicate check → RetryingTransfer

Components:
- **StreamDownloader**: Opens the source asset as a byte stream
- **RetryingTransfer**: Download + resumable upload as one retried unit
- **TransferWorkflow**: Sequences every step of a run
"""

from lessonsync.transfer.download import (
    DownloadedMedia,
    StreamDownloader,
    parse_content_length,
    parse_mime_type,
)
from lessonsync.transfer.retry import (
    DEFAULT_INITIAL_BACKOFF,
    DEFAULT_MAX_ATTEMPTS,
    RetryingTransfer,
    backoff_delay,
    retry_with_backoff,
)
from lessonsync.transfer.workflow import TransferWorkflow, run_transfer

__all__ = [
    # Download
    "DownloadedMedia",
    "StreamDownloader",
    "parse_content_length",
    "parse_mime_type",
    # Retry
    "DEFAULT_INITIAL_BACKOFF",
    "DEFAULT_MAX_ATTEMPTS",
    "RetryingTransfer",
    "backoff_delay",
    "retry_with_backoff",
    # Workflow
    "TransferWorkflow",
    "run_transfer",
]
