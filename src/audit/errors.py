"""Failure taxonomy for the scan lifecycle.

Every error carries a ``user_message`` that is safe to show as-is; the
underlying cause (if any) is chained via ``__cause__`` and only logged.
"""

from typing import Optional


class ScanError(Exception):
    """Base class for errors surfaced to the user through ``SessionState.error_message``."""

    default_message = "Something went wrong."

    def __init__(self, user_message: Optional[str] = None) -> None:
        self.user_message = user_message or self.default_message
        super().__init__(self.user_message)


class InvalidInput(ScanError):
    """Repository URL missing; raised before any network call."""

    default_message = "Please enter a GitHub URL."


class SubmissionFailed(ScanError):
    """Start request failed (transport, non-2xx or unusable body)."""

    default_message = "Failed to start scan. Please try again."


class PollingFailed(ScanError):
    """Status poll failed; terminal for the current job."""

    default_message = "Lost contact with the scan service."


class RemoteJobError(ScanError):
    """Backend reported ``status == "error"``; the message is passed through verbatim."""

    default_message = "Scan failed."
