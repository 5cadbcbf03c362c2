"""Retry controller: keeps a root folder sync going through rate limits."""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from ..exceptions import BoxMirrorError, SyncError, is_rate_limit
from ..models import RunResult, RunState
from ..run_log import RunLog
from ..utils import DEFAULT_MAX_RETRY_AFTER
from .engine import FolderSynchronizer
from .ledger import DownloadLedger

logger = logging.getLogger(__name__)


@dataclass
class RetryPolicy:
    """Limits applied to server-requested rate-limit waits.

    Attributes:
        max_retry_after: Longest single wait in seconds; larger
            ``Retry-After`` values are clamped to this
        max_attempts: Total sync attempts allowed per root, or None to keep
            retrying for as long as the server answers with a usable
            ``Retry-After``
    """

    max_retry_after: float = DEFAULT_MAX_RETRY_AFTER
    max_attempts: Optional[int] = None

    def __post_init__(self) -> None:
        if self.max_retry_after < 0:
            raise ValueError("max_retry_after must not be negative")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def delay_for(self, retry_after: float) -> float:
        return min(max(retry_after, 0.0), self.max_retry_after)


class RetryController:
    """Runs sync attempts for one root until it completes or fails for good.

    A rate-limited attempt is followed by a wait of ``Retry-After`` seconds
    and a fresh attempt that reuses the same ledger, so nothing downloaded
    earlier is fetched again. Every other failure ends the run.
    """

    def __init__(
        self,
        synchronizer: FolderSynchronizer,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
        run_log: Optional[RunLog] = None,
    ):
        self.synchronizer = synchronizer
        self.policy = policy or RetryPolicy()
        self.sleep = sleep
        self.run_log = run_log or RunLog.null()

    def run(
        self,
        folder_id: str,
        local_path: Path,
        ledger: Optional[DownloadLedger] = None,
    ) -> RunResult:
        """Mirror one root folder, waiting out rate limits.

        Args:
            folder_id: Root folder ID
            local_path: Local directory for the root (must exist)
            ledger: Ledger to resume from (default: a new, empty one)

        Returns:
            Terminal result for the root
        """
        if ledger is None:
            ledger = DownloadLedger()

        attempts = 0
        while True:
            attempts += 1
            try:
                self.synchronizer.sync(folder_id, local_path, ledger)
            except BoxMirrorError as e:
                retry_after = is_rate_limit(e)
                if retry_after is None:
                    return self._failed(folder_id, local_path, ledger, attempts, e)

                self.run_log.error(f"Rate Limit Exceeded: {e}")
                if (
                    self.policy.max_attempts is not None
                    and attempts >= self.policy.max_attempts
                ):
                    return self._failed(
                        folder_id,
                        local_path,
                        ledger,
                        attempts,
                        e,
                        reason=(
                            f"rate limit retries exhausted after {attempts} attempt(s)"
                        ),
                    )

                delay = self.policy.delay_for(retry_after)
                self.run_log.info(
                    f"Rate limit exceeded for root folder ID {folder_id}. "
                    f"Retrying after {delay:g} seconds."
                )
                self.sleep(delay)
                continue

            self.run_log.info(
                f"Download completed successfully for root folder ID {folder_id}"
            )
            return RunResult(
                folder_id=folder_id,
                state=RunState.COMPLETED,
                attempts=attempts,
                files_downloaded=len(ledger),
                local_path=local_path,
            )

    def _failed(
        self,
        folder_id: str,
        local_path: Path,
        ledger: DownloadLedger,
        attempts: int,
        error: BoxMirrorError,
        reason: Optional[str] = None,
    ) -> RunResult:
        reason = reason or str(error)
        self.run_log.error(
            f"Error downloading files for root folder ID {folder_id}: {reason}"
        )
        if isinstance(error, SyncError):
            for other in error.other_errors:
                self.run_log.error(f"  also failed in root folder ID {folder_id}: {other}")
        return RunResult(
            folder_id=folder_id,
            state=RunState.FAILED,
            reason=reason,
            attempts=attempts,
            files_downloaded=len(ledger),
            local_path=local_path,
        )
