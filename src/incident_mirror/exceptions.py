"""Error taxonomy for incident-mirror.

Every failure is fatal to the current refresh run. Nothing in the sync
engine catches these; the CLI turns them into a message on stderr and a
non-zero exit status.
"""

from __future__ import annotations

from typing import Optional


class MirrorError(Exception):
    """Base class for all incident-mirror errors."""


class ConfigurationError(MirrorError):
    """A required setting is missing or a setting cannot be parsed."""


class StorageError(MirrorError):
    """A store operation failed; the enclosing transaction was rolled back."""


class RemoteError(MirrorError):
    """The remote API answered with a non-200 status or could not be reached."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint


class AuthenticationError(RemoteError):
    """The remote API rejected the configured token."""
