"""Data models for Box folder listings and run results."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional


class EntryType(Enum):
    """Item types returned by the Box folder listing."""

    FOLDER = "folder"
    FILE = "file"
    WEB_LINK = "web_link"

    @classmethod
    def parse(cls, value: Any) -> Optional["EntryType"]:
        """Parse an API type string, returning None for unknown types."""
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class RemoteEntry:
    """A single child of a remote folder."""

    id: str
    """Box item ID (stable across retries)"""

    name: str
    """Item name as shown in Box"""

    type: Optional[EntryType]
    """Item type, None if the API returned a type we do not know"""

    size: Optional[int] = None
    """File size in bytes when the API reports it"""

    @property
    def is_folder(self) -> bool:
        return self.type is EntryType.FOLDER

    @property
    def is_file(self) -> bool:
        return self.type is EntryType.FILE

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RemoteEntry":
        """Create RemoteEntry from a Box item JSON object."""
        size = data.get("size")
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            type=EntryType.parse(data.get("type")),
            size=int(size) if size is not None else None,
        )


@dataclass
class FolderPage:
    """One page of a folder listing."""

    entries: list[RemoteEntry]
    offset: int = 0
    limit: int = 0
    total_count: Optional[int] = None
    name: Optional[str] = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "FolderPage":
        """Parse either a ``/folders/{id}`` or a ``/folders/{id}/items`` response.

        The folder endpoint nests the listing under ``item_collection`` and
        carries the folder name; the items endpoint is the bare collection.
        """
        collection = data.get("item_collection")
        name = data.get("name") if collection is not None else None
        if collection is None:
            collection = data

        raw_entries = collection.get("entries") or []
        return cls(
            entries=[RemoteEntry.from_dict(item) for item in raw_entries],
            offset=int(collection.get("offset") or 0),
            limit=int(collection.get("limit") or 0),
            total_count=collection.get("total_count"),
            name=name,
        )


@dataclass
class FolderInfo:
    """A remote folder with all of its children."""

    id: str
    name: str
    children: list[RemoteEntry] = field(default_factory=list)
    total_count: Optional[int] = None

    @property
    def folders(self) -> list[RemoteEntry]:
        return [entry for entry in self.children if entry.is_folder]

    @property
    def files(self) -> list[RemoteEntry]:
        return [entry for entry in self.children if entry.is_file]


class RunState(Enum):
    """Terminal state of one root folder run."""

    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class RunResult:
    """Outcome of mirroring one root folder."""

    folder_id: str
    state: RunState
    reason: Optional[str] = None
    attempts: int = 0
    files_downloaded: int = 0
    local_path: Optional[Path] = None

    @property
    def ok(self) -> bool:
        return self.state is RunState.COMPLETED
