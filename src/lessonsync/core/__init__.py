"""Core module - Errors, data model and configuration."""

from lessonsync.core.config import AppConfig, load_config
from lessonsync.core.errors import (
    AutomationError,
    ConfigurationError,
    ProtocolError,
    TransferError,
    TransportError,
    WorkflowError,
    is_retryable_status,
)
from lessonsync.core.types import (
    AccessToken,
    AssetDescriptor,
    OAuthCredentials,
    RemoteFile,
    SiteCredentials,
    TransferOutcome,
    TransferStatus,
    derive_canonical_name,
)

__all__ = [
    # Config
    "AppConfig",
    "load_config",
    # Errors
    "AutomationError",
    "ConfigurationError",
    "ProtocolError",
    "TransferError",
    "TransportError",
    "WorkflowError",
    "is_retryable_status",
    # Types
    "AccessToken",
    "AssetDescriptor",
    "OAuthCredentials",
    "RemoteFile",
    "SiteCredentials",
    "TransferOutcome",
    "TransferStatus",
    "derive_canonical_name",
]
