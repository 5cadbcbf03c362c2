"""Core sync engine: mirrors a remote folder tree onto a local directory."""

import logging
import threading
from collections import deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..exceptions import SyncError
from ..folder_reader import FolderReader
from ..models import RemoteEntry
from ..run_log import RunLog
from ..utils import DEFAULT_WORKERS, format_size, safe_name
from .ledger import DownloadLedger
from .operations import TransferOperations

logger = logging.getLogger(__name__)


@dataclass
class SyncStats:
    """Counters for one sync attempt."""

    folders: int = 0
    downloaded: int = 0
    skipped: int = 0
    bytes: int = 0


class FolderSynchronizer:
    """Walks a remote folder tree and downloads every file not yet ledgered.

    Folders are processed from an explicit work queue, so tree depth is not
    bounded by the Python call stack. File transfers run on a thread pool;
    each finished transfer is recorded in the ledger right away.
    """

    def __init__(
        self,
        reader: FolderReader,
        operations: TransferOperations,
        max_workers: int = DEFAULT_WORKERS,
        run_log: Optional[RunLog] = None,
    ):
        """Initialize the synchronizer.

        Args:
            reader: Folder listing reader
            operations: Transfer operations for directories and files
            max_workers: Number of parallel file transfers (default: 4)
            run_log: Run log for activity lines (default: discard)
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.reader = reader
        self.operations = operations
        self.max_workers = max_workers
        self.run_log = run_log or RunLog.null()

    def sync(
        self, folder_id: str, local_path: Path, ledger: DownloadLedger
    ) -> SyncStats:
        """Mirror ``folder_id`` into ``local_path``.

        Returns only after every transfer started by this call has settled.
        The first failure stops further descent; transfers already running
        are allowed to finish (and are ledgered if they succeed) before the
        failure is raised.

        Args:
            folder_id: Remote folder to mirror
            local_path: Existing local directory mirroring ``folder_id``
            ledger: Files already downloaded in this root run

        Returns:
            Statistics for this attempt

        Raises:
            SyncError: Wrapping the first listing, directory or transfer failure
        """
        stats = SyncStats()
        stats_lock = threading.Lock()
        pending: deque[tuple[str, Path]] = deque([(folder_id, local_path)])
        visited: set[str] = set()
        scheduled: set[str] = set()
        futures: dict[Future, tuple[RemoteEntry, Path, str]] = {}
        errors: list[SyncError] = []

        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix=f"sync-{folder_id}"
        ) as executor:
            while pending and not errors:
                current_id, current_path = pending.popleft()
                if current_id in visited:
                    continue
                visited.add(current_id)

                try:
                    children = self.reader.list_children(current_id)
                except Exception as e:
                    errors.append(
                        SyncError(
                            f"Listing folder {current_id} failed",
                            cause=e,
                            folder_id=current_id,
                            path=current_path,
                        )
                    )
                    break

                folders = [entry for entry in children if entry.is_folder]
                files = [entry for entry in children if entry.is_file]
                stats.folders += 1

                self.run_log.info(f"Downloading files from folder ID {current_id}")

                for entry in files:
                    if entry.id in scheduled or ledger.has(entry.id):
                        with stats_lock:
                            stats.skipped += 1
                        continue
                    scheduled.add(entry.id)
                    destination = current_path / safe_name(entry.name)
                    future = executor.submit(
                        self._transfer_one, entry, destination, ledger, stats, stats_lock
                    )
                    futures[future] = (entry, destination, current_id)

                for subfolder in folders:
                    subfolder_path = current_path / safe_name(subfolder.name)
                    try:
                        self.operations.ensure_directory(subfolder_path)
                    except Exception as e:
                        errors.append(
                            SyncError(
                                f"Creating directory for folder {subfolder.id} failed",
                                cause=e,
                                folder_id=subfolder.id,
                                path=subfolder_path,
                            )
                        )
                        break
                    pending.append((subfolder.id, subfolder_path))

                errors.extend(self._settle(futures, block=False))

            errors.extend(self._settle(futures, block=True))

        if errors:
            first = errors[0]
            first.other_errors.extend(error.cause for error in errors[1:])
            raise first from first.cause

        logger.debug(
            f"Folder {folder_id}: {stats.downloaded} downloaded, "
            f"{stats.skipped} skipped in {stats.folders} folder(s)"
        )
        return stats

    def _transfer_one(
        self,
        entry: RemoteEntry,
        destination: Path,
        ledger: DownloadLedger,
        stats: SyncStats,
        stats_lock: threading.Lock,
    ) -> int:
        """Download one file and record it in the ledger once it is complete."""
        size = self.operations.transfer(entry, destination)
        ledger.mark_downloaded(entry.id)
        with stats_lock:
            stats.downloaded += 1
            stats.bytes += size
        self.run_log.info(f"Downloaded {destination} ({format_size(size)})")
        return size

    def _settle(
        self, futures: dict[Future, tuple[RemoteEntry, Path, str]], block: bool
    ) -> list[SyncError]:
        """Collect finished transfers and return their failures.

        Args:
            futures: Outstanding transfers; settled ones are removed
            block: Wait for every outstanding transfer instead of only the
                ones that already finished

        Returns:
            One SyncError per failed transfer, in completion order
        """
        errors: list[SyncError] = []
        while futures:
            if block:
                done, _ = wait(list(futures), return_when=FIRST_COMPLETED)
            else:
                done = {future for future in futures if future.done()}
                if not done:
                    break

            for future in done:
                entry, destination, parent_id = futures.pop(future)
                error = future.exception()
                if error is not None:
                    errors.append(
                        SyncError(
                            f"Downloading file {entry.id} ({entry.name}) failed",
                            cause=error,
                            folder_id=parent_id,
                            file_id=entry.id,
                            path=destination,
                        )
                    )
        return errors
