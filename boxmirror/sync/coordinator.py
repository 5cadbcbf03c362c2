"""Run coordinator: mirrors several root folders side by side."""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

from ..api import BoxClient
from ..folder_reader import FolderReader
from ..models import RunResult, RunState
from ..run_log import RunLog
from ..utils import DEFAULT_PAGE_SIZE, DEFAULT_WORKERS, safe_name
from .engine import FolderSynchronizer
from .ledger import DownloadLedger
from .operations import TransferOperations
from .retry import RetryController, RetryPolicy

logger = logging.getLogger(__name__)


class RunCoordinator:
    """Starts one independent retry controller per requested root folder."""

    def __init__(
        self,
        client: BoxClient,
        destination: Path,
        max_workers: int = DEFAULT_WORKERS,
        policy: Optional[RetryPolicy] = None,
        run_log: Optional[RunLog] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        """Initialize the coordinator.

        Args:
            client: Box API client shared by all roots
            destination: Directory under which each root is mirrored
            max_workers: Parallel file transfers per root
            policy: Rate-limit retry policy applied to every root
            run_log: Run log (default: discard)
            page_size: Folder listing page size
        """
        self.client = client
        self.destination = Path(destination)
        self.max_workers = max_workers
        self.policy = policy or RetryPolicy()
        self.run_log = run_log or RunLog.null()
        self.reader = FolderReader(client, page_size=page_size)
        self.operations = TransferOperations(client)

    def run(self, folder_ids: list[str]) -> list[RunResult]:
        """Mirror every root folder concurrently.

        Args:
            folder_ids: Root folder IDs (duplicates are mirrored once)

        Returns:
            One terminal result per distinct root, in request order
        """
        unique_ids = list(dict.fromkeys(folder_ids))
        if not unique_ids:
            return []

        with ThreadPoolExecutor(
            max_workers=len(unique_ids), thread_name_prefix="root"
        ) as executor:
            futures = [
                executor.submit(self.run_root, folder_id) for folder_id in unique_ids
            ]
            return [future.result() for future in futures]

    def run_root(self, folder_id: str) -> RunResult:
        """Mirror a single root folder; never raises."""
        try:
            root_info = self.reader.get_folder_info(
                folder_id, include_children=False
            )
            local_root = self.destination / safe_name(root_info.name)
            self.operations.ensure_directory(local_root)
        except Exception as e:
            self.run_log.error(
                f"Error fetching root folder info for ID {folder_id}: {e}"
            )
            return RunResult(folder_id=folder_id, state=RunState.FAILED, reason=str(e))

        self.run_log.info(
            f"Mirroring root folder ID {folder_id} ({root_info.name}) into {local_root}"
        )
        controller = RetryController(
            FolderSynchronizer(
                self.reader,
                self.operations,
                max_workers=self.max_workers,
                run_log=self.run_log,
            ),
            policy=self.policy,
            run_log=self.run_log,
        )
        try:
            return controller.run(folder_id, local_root, DownloadLedger())
        except Exception as e:
            logger.debug("Unexpected failure", exc_info=True)
            self.run_log.error(
                f"Error downloading files for root folder ID {folder_id}: {e}"
            )
            return RunResult(
                folder_id=folder_id,
                state=RunState.FAILED,
                reason=str(e),
                local_path=local_root,
            )
