"""Tests for the download ledger."""

import threading

from boxmirror.sync.ledger import DownloadLedger


class TestDownloadLedger:
    """Test DownloadLedger functionality."""

    def test_new_ledger_is_empty(self):
        """Test that a new ledger records nothing."""
        ledger = DownloadLedger()
        assert len(ledger) == 0
        assert not ledger.has("1")

    def test_mark_downloaded(self):
        """Test that marked IDs are reported as downloaded."""
        ledger = DownloadLedger()
        ledger.mark_downloaded("1")

        assert ledger.has("1")
        assert "1" in ledger
        assert not ledger.has("2")

    def test_mark_twice_counts_once(self):
        """Test that marking the same ID twice is harmless."""
        ledger = DownloadLedger()
        ledger.mark_downloaded("1")
        ledger.mark_downloaded("1")
        assert len(ledger) == 1

    def test_initial_ids(self):
        """Test seeding a ledger with known IDs."""
        ledger = DownloadLedger(["a", "b"])
        assert ledger.snapshot() == frozenset({"a", "b"})

    def test_snapshot_is_a_copy(self):
        """Test that snapshots do not change with the ledger."""
        ledger = DownloadLedger(["a"])
        snapshot = ledger.snapshot()
        ledger.mark_downloaded("b")
        assert snapshot == frozenset({"a"})

    def test_concurrent_marks_are_not_lost(self):
        """Test that concurrent marks of distinct IDs all land."""
        ledger = DownloadLedger()
        barrier = threading.Barrier(8)

        def worker(worker_id: int) -> None:
            barrier.wait()
            for i in range(500):
                ledger.mark_downloaded(f"{worker_id}-{i}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(ledger) == 8 * 500
