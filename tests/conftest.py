"""Shared fixtures: an in-memory Box account."""

import threading
from collections import Counter
from contextlib import contextmanager
from typing import Optional

import pytest

from boxmirror.run_log import RunLog


class FakeBox:
    """In-memory stand-in for BoxClient.

    Folders and files are registered with ``add_folder`` / ``add_file``.
    Failures are injected per folder or file ID and raised once each, in
    order, on the next listing or download of that item.
    """

    def __init__(self):
        self.folders: dict[str, dict] = {}
        self.contents: dict[str, bytes] = {}
        self.listing_failures: dict[str, list[Exception]] = {}
        self.stream_failures: dict[str, list[Exception]] = {}
        self.listing_calls: list[tuple[str, int, int]] = []
        self.stream_calls: Counter = Counter()
        self._lock = threading.Lock()
        self.add_folder("0", "All Files")

    def add_folder(self, folder_id: str, name: str, parent_id: Optional[str] = None):
        self.folders[folder_id] = {"id": folder_id, "name": name, "entries": []}
        if parent_id is not None:
            self.folders[parent_id]["entries"].append(
                {"type": "folder", "id": folder_id, "name": name}
            )
        return folder_id

    def add_file(self, file_id: str, name: str, parent_id: str, content: bytes = b""):
        self.contents[file_id] = content or f"content of {name}".encode()
        self.folders[parent_id]["entries"].append(
            {
                "type": "file",
                "id": file_id,
                "name": name,
                "size": len(self.contents[file_id]),
            }
        )
        return file_id

    def add_entry(self, parent_id: str, entry: dict):
        self.folders[parent_id]["entries"].append(entry)

    def fail_listing(self, folder_id: str, *errors: Exception):
        self.listing_failures.setdefault(folder_id, []).extend(errors)

    def fail_stream(self, file_id: str, *errors: Exception):
        self.stream_failures.setdefault(file_id, []).extend(errors)

    def _pop_failure(self, failures: dict, item_id: str) -> Optional[Exception]:
        with self._lock:
            queued = failures.get(item_id)
            if queued:
                return queued.pop(0)
        return None

    def get_folder_items(self, folder_id, offset=0, limit=1000):
        with self._lock:
            self.listing_calls.append((folder_id, offset, limit))
        error = self._pop_failure(self.listing_failures, folder_id)
        if error is not None:
            raise error
        entries = self.folders[folder_id]["entries"]
        return {
            "entries": entries[offset : offset + limit],
            "offset": offset,
            "limit": limit,
            "total_count": len(entries),
        }

    def get_folder(self, folder_id, offset=0, limit=1000):
        items = self.get_folder_items(folder_id, offset=offset, limit=limit)
        return {
            "type": "folder",
            "id": folder_id,
            "name": self.folders[folder_id]["name"],
            "item_collection": items,
        }

    @contextmanager
    def open_read_stream(self, file_id, chunk_size=1024, timeout=60.0):
        with self._lock:
            self.stream_calls[file_id] += 1
        error = self._pop_failure(self.stream_failures, file_id)
        if error is not None:
            raise error
        data = self.contents[file_id]
        yield iter(
            [data[i : i + chunk_size] for i in range(0, len(data), chunk_size)]
        )


@pytest.fixture
def fake_box():
    """Provide an empty in-memory Box account (root folder "0")."""
    return FakeBox()


@pytest.fixture
def null_log():
    """Provide a RunLog that discards everything."""
    return RunLog.null()
