"""Sync engine for boxmirror - one-way mirroring of Box folder trees."""

from .coordinator import RunCoordinator
from .engine import FolderSynchronizer, SyncStats
from .ledger import DownloadLedger
from .operations import TransferOperations
from .retry import RetryController, RetryPolicy

__all__ = [
    "RunCoordinator",
    "FolderSynchronizer",
    "SyncStats",
    "DownloadLedger",
    "TransferOperations",
    "RetryController",
    "RetryPolicy",
]
