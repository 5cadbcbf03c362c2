"""Ledger of files already downloaded during one root folder run."""

import threading
from collections.abc import Iterable


class DownloadLedger:
    """Thread-safe set of downloaded file IDs.

    One ledger lives for every attempt of a root folder run, so a retry
    after a rate limit skips the files an earlier attempt already finished.
    Entries are only ever added.
    """

    def __init__(self, file_ids: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._file_ids: set[str] = set(file_ids)

    def has(self, file_id: str) -> bool:
        """Check whether ``file_id`` has been fully downloaded."""
        with self._lock:
            return file_id in self._file_ids

    def mark_downloaded(self, file_id: str) -> None:
        """Record that ``file_id`` has been fully written to disk."""
        with self._lock:
            self._file_ids.add(file_id)

    def snapshot(self) -> frozenset[str]:
        """Return a point-in-time copy of the recorded IDs."""
        with self._lock:
            return frozenset(self._file_ids)

    def __contains__(self, file_id: object) -> bool:
        with self._lock:
            return file_id in self._file_ids

    def __len__(self) -> int:
        with self._lock:
            return len(self._file_ids)

    def __repr__(self) -> str:
        return f"DownloadLedger({len(self)} files)"
