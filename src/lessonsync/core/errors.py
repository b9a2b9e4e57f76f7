"""Failure taxonomy shared by every transfer step.

This module provides:
- TransferError: Base exception carrying the step name and a retryable flag
- ConfigurationError, AutomationError, TransportError, ProtocolError: Kinds
- WorkflowError: Single outward-facing error raised by the workflow
- is_retryable_status / describe_exception: Classification helpers
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

# Maximum number of response body characters kept in error messages
MAX_BODY_EXCERPT = 300


def is_retryable_status(status_code: int) -> bool:
    """Check if an HTTP status indicates a transient failure.

    Args:
        status_code: HTTP status code.

    Returns:
        True for 429 (rate limited) and any 5xx status.
    """
    return status_code == 429 or status_code >= 500


def describe_exception(error: BaseException) -> str:
    """Get a readable message for an arbitrary exception."""
    message = str(error)
    return message if message else type(error).__name__


class TransferError(Exception):
    """Base exception for transfer errors.

    Attributes:
        step: Name of the step that failed (e.g. "download-video").
        message: Human readable description.
        status_code: HTTP status when the failure came from a response.
        retryable: Whether retrying the transfer may succeed.
    """

    def __init__(
        self,
        step: str,
        message: str,
        status_code: int | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(f"[{step}] {message}")
        self.step = step
        self.message = message
        self.status_code = status_code
        self.retryable = retryable


class ConfigurationError(TransferError):
    """A required setting is missing or invalid. Always fatal."""

    def __init__(self, key: str, message: str) -> None:
        super().__init__("load-config", message)
        self.key = key


class AutomationError(TransferError):
    """The asset locator could not complete a page interaction."""


class TransportError(TransferError):
    """A download or storage API call failed.

    Retryability is derived from the HTTP status only; failures without
    a status (network errors, decoding errors) are never retried.
    """

    def __init__(
        self,
        step: str,
        message: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(
            step,
            message,
            status_code=status_code,
            retryable=status_code is not None and is_retryable_status(status_code),
        )

    @classmethod
    def from_response(
        cls, step: str, action: str, response: httpx.Response
    ) -> TransportError:
        """Build an error from a failed HTTP response.

        The response body must already be read.

        Args:
            step: Step name.
            action: What was being attempted, used as message prefix.
            response: The failed response.

        Returns:
            TransportError classified from the response status.
        """
        detail = f"{response.status_code} {response.reason_phrase}".strip()
        body = response.text
        if body:
            detail = f"{detail} - {body[:MAX_BODY_EXCERPT]}"
        return cls(step, f"{action}: {detail}", status_code=response.status_code)


class ProtocolError(TransferError):
    """A success response lacks a field the workflow requires.

    Never retried, even when the status code would be retryable.
    """

    def __init__(self, step: str, message: str) -> None:
        super().__init__(step, message)


class WorkflowError(TransferError):
    """Outward-facing error of the transfer workflow.

    Wraps the classified error of whichever step failed so callers only
    have to handle one error shape.

    Attributes:
        cause: The classified error raised by the failing step.
    """

    def __init__(self, cause: TransferError) -> None:
        super().__init__(
            cause.step,
            cause.message,
            status_code=cause.status_code,
            retryable=cause.retryable,
        )
        self.cause = cause

    @property
    def kind(self) -> str:
        """Name of the originating error kind (e.g. "TransportError")."""
        return type(self.cause).__name__
