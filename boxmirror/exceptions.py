"""Exceptions raised by boxmirror."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Optional


class BoxMirrorError(Exception):
    """Base exception for all boxmirror errors."""


class BoxConfigError(BoxMirrorError):
    """Raised when required configuration (e.g. the access token) is missing."""


class BoxAPIError(BoxMirrorError):
    """Raised when a request to the Box API fails.

    Attributes:
        status_code: HTTP status code, or None for transport failures
        headers: Response headers (lower-cased keys)
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        headers: Optional[Mapping[str, str]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.headers = {k.lower(): v for k, v in (headers or {}).items()}


class BoxAuthenticationError(BoxAPIError):
    """Raised on 401 responses."""


class BoxPermissionError(BoxAPIError):
    """Raised on 403 responses."""


class BoxNotFoundError(BoxAPIError):
    """Raised on 404 responses."""


class BoxNetworkError(BoxAPIError):
    """Raised when the request never produced an HTTP response."""


class BoxInvalidResponseError(BoxAPIError):
    """Raised when the API answers with something that is not JSON."""


class BoxRateLimitError(BoxAPIError):
    """Raised on 429 responses.

    ``retry_after`` holds the parsed ``Retry-After`` header in seconds, or
    None when the header is missing or unusable.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = 429,
        headers: Optional[Mapping[str, str]] = None,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message, status_code=status_code, headers=headers)
        self.retry_after = retry_after


class BoxFileError(BoxMirrorError):
    """Raised when writing to the local filesystem fails."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class SyncError(BoxMirrorError):
    """Aggregate failure of one folder tree synchronization.

    Carries the folder (and file, when a transfer failed) that was being
    processed, the local path involved, and the first underlying error.
    Further failures that settled while in-flight work drained are kept in
    ``other_errors``.
    """

    def __init__(
        self,
        message: str,
        cause: BaseException,
        folder_id: Optional[str] = None,
        file_id: Optional[str] = None,
        path: Optional[Path] = None,
        other_errors: Optional[list[BaseException]] = None,
    ):
        super().__init__(message)
        self.cause = cause
        self.folder_id = folder_id
        self.file_id = file_id
        self.path = path
        self.other_errors = list(other_errors or [])

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.folder_id is not None:
            parts.append(f"folder={self.folder_id}")
        if self.file_id is not None:
            parts.append(f"file={self.file_id}")
        if self.path is not None:
            parts.append(f"path={self.path}")
        parts.append(f"cause={self.cause.__class__.__name__}: {self.cause}")
        return ", ".join(parts)


def is_rate_limit(error: BaseException) -> Optional[float]:
    """Return the server's retry delay if ``error`` is a usable rate limit.

    Looks through a SyncError to its cause. A 429 without a parseable
    ``retry-after`` header is not usable and yields None.

    Args:
        error: Exception raised by a sync attempt

    Returns:
        Seconds to wait, or None if the error is not a recoverable rate limit
    """
    if isinstance(error, SyncError):
        error = error.cause
    if isinstance(error, BoxRateLimitError) and error.status_code == 429:
        return error.retry_after
    return None
