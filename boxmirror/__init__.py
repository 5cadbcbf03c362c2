"""boxmirror - mirror Box folder trees to a local directory."""

from .api import BoxClient
from .exceptions import (
    BoxAPIError,
    BoxAuthenticationError,
    BoxConfigError,
    BoxFileError,
    BoxInvalidResponseError,
    BoxMirrorError,
    BoxNetworkError,
    BoxNotFoundError,
    BoxPermissionError,
    BoxRateLimitError,
    SyncError,
)
from .folder_reader import FolderReader
from .models import EntryType, FolderInfo, RemoteEntry, RunResult, RunState

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "BoxClient",
    "FolderReader",
    "BoxAPIError",
    "BoxAuthenticationError",
    "BoxConfigError",
    "BoxFileError",
    "BoxInvalidResponseError",
    "BoxMirrorError",
    "BoxNetworkError",
    "BoxNotFoundError",
    "BoxPermissionError",
    "BoxRateLimitError",
    "SyncError",
    "EntryType",
    "FolderInfo",
    "RemoteEntry",
    "RunResult",
    "RunState",
]
