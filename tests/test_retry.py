"""Tests for the rate-limit retry controller."""

from unittest.mock import Mock

import pytest

from boxmirror.exceptions import (
    BoxAPIError,
    BoxRateLimitError,
    SyncError,
    is_rate_limit,
)
from boxmirror.folder_reader import FolderReader
from boxmirror.models import RunState
from boxmirror.run_log import RunLog
from boxmirror.sync import (
    DownloadLedger,
    FolderSynchronizer,
    RetryController,
    RetryPolicy,
    TransferOperations,
)


def rate_limit(seconds):
    return BoxRateLimitError("Rate limit exceeded", retry_after=seconds)


@pytest.fixture
def sleep():
    return Mock()


def make_controller(fake_box, sleep, policy=None, run_log=None) -> RetryController:
    synchronizer = FolderSynchronizer(
        FolderReader(fake_box),
        TransferOperations(fake_box),
        max_workers=1,
    )
    return RetryController(synchronizer, policy=policy, sleep=sleep, run_log=run_log)


class TestRetryPolicy:
    """Tests for RetryPolicy."""

    def test_defaults(self):
        """Test that the default policy retries without an attempt cap."""
        policy = RetryPolicy()
        assert policy.max_attempts is None
        assert policy.max_retry_after == 3600.0

    def test_delay_is_clamped(self):
        """Test that server delays are clamped into [0, max_retry_after]."""
        policy = RetryPolicy(max_retry_after=10)
        assert policy.delay_for(2) == 2
        assert policy.delay_for(86400) == 10
        assert policy.delay_for(-5) == 0

    @pytest.mark.parametrize(
        "kwargs", [{"max_retry_after": -1}, {"max_attempts": 0}]
    )
    def test_invalid_values(self, kwargs):
        """Test that invalid limits are rejected."""
        with pytest.raises(ValueError):
            RetryPolicy(**kwargs)


class TestIsRateLimit:
    """Tests for is_rate_limit."""

    def test_direct_rate_limit(self):
        assert is_rate_limit(rate_limit(3.0)) == 3.0

    def test_wrapped_rate_limit(self):
        error = SyncError("failed", cause=rate_limit(4.0))
        assert is_rate_limit(error) == 4.0

    def test_rate_limit_without_header(self):
        assert is_rate_limit(rate_limit(None)) is None

    def test_other_errors(self):
        assert is_rate_limit(BoxAPIError("boom", status_code=500)) is None
        assert is_rate_limit(SyncError("x", cause=ValueError("y"))) is None


class TestRetryController:
    """Tests for RetryController."""

    def test_completes_without_retry(self, fake_box, tmp_path, sleep):
        """Test a clean run completes on the first attempt."""
        fake_box.add_file("1", "a.txt", "0")

        result = make_controller(fake_box, sleep).run("0", tmp_path)

        assert result.state is RunState.COMPLETED
        assert result.ok
        assert result.attempts == 1
        assert result.files_downloaded == 1
        sleep.assert_not_called()

    def test_rate_limit_resumes_without_redownloading(
        self, fake_box, tmp_path, sleep
    ):
        """Test 3 files where #2 hits a 429: wait, then fetch only #2 again."""
        fake_box.add_file("1", "one.txt", "0")
        fake_box.add_file("2", "two.txt", "0")
        fake_box.add_file("3", "three.txt", "0")
        fake_box.fail_stream("2", rate_limit(2.0))
        ledger = DownloadLedger()

        result = make_controller(fake_box, sleep).run("0", tmp_path, ledger)

        assert result.state is RunState.COMPLETED
        assert result.attempts == 2
        sleep.assert_called_once_with(2.0)
        assert fake_box.stream_calls == {"1": 1, "2": 2, "3": 1}
        assert ledger.snapshot() == frozenset({"1", "2", "3"})
        for name in ("one.txt", "two.txt", "three.txt"):
            assert (tmp_path / name).exists()

    def test_rate_limit_on_listing_reuses_ledger(self, fake_box, tmp_path, sleep):
        """Test that a rate-limited listing keeps earlier downloads."""
        fake_box.add_folder("10", "sub", parent_id="0")
        fake_box.add_file("1", "top.txt", "0")
        fake_box.add_file("2", "inner.txt", "10")
        fake_box.fail_listing("10", rate_limit(1.0), rate_limit(1.0))

        result = make_controller(fake_box, sleep).run("0", tmp_path)

        assert result.state is RunState.COMPLETED
        assert result.attempts == 3
        assert sleep.call_count == 2
        assert fake_box.stream_calls == {"1": 1, "2": 1}

    def test_rate_limit_without_retry_after_fails(self, fake_box, tmp_path, sleep):
        """Test that a 429 lacking a usable header is terminal."""
        fake_box.add_file("1", "a.txt", "0")
        fake_box.fail_stream("1", rate_limit(None))

        result = make_controller(fake_box, sleep).run("0", tmp_path)

        assert result.state is RunState.FAILED
        assert result.attempts == 1
        sleep.assert_not_called()

    def test_server_error_fails(self, fake_box, tmp_path, sleep):
        """Test that a 500 on listing ends the run."""
        fake_box.fail_listing("0", BoxAPIError("API request failed", status_code=500))

        result = make_controller(fake_box, sleep).run("0", tmp_path)

        assert result.state is RunState.FAILED
        assert "API request failed" in result.reason
        sleep.assert_not_called()

    def test_retry_after_is_clamped(self, fake_box, tmp_path, sleep):
        """Test that a huge Retry-After is clamped by the policy."""
        fake_box.add_file("1", "a.txt", "0")
        fake_box.fail_stream("1", rate_limit(100000.0))

        make_controller(fake_box, sleep, policy=RetryPolicy(max_retry_after=30)).run(
            "0", tmp_path
        )

        sleep.assert_called_once_with(30)

    def test_max_attempts_exhausted(self, fake_box, tmp_path, sleep):
        """Test that a capped policy gives up after the last attempt."""
        fake_box.add_file("1", "a.txt", "0")
        fake_box.fail_stream("1", *[rate_limit(1.0) for _ in range(5)])

        result = make_controller(fake_box, sleep, policy=RetryPolicy(max_attempts=2)).run(
            "0", tmp_path
        )

        assert result.state is RunState.FAILED
        assert result.attempts == 2
        assert "exhausted" in result.reason
        assert sleep.call_count == 1

    def test_unbounded_retries_by_default(self, fake_box, tmp_path, sleep):
        """Test that the default policy keeps retrying while 429s continue."""
        fake_box.add_file("1", "a.txt", "0")
        fake_box.fail_stream("1", *[rate_limit(1.0) for _ in range(25)])

        result = make_controller(fake_box, sleep).run("0", tmp_path)

        assert result.ok
        assert result.attempts == 26
        assert sleep.call_count == 25

    def test_logging(self, fake_box, tmp_path, sleep):
        """Test that rate limits, waits and completion are logged."""
        fake_box.add_file("1", "a.txt", "0")
        fake_box.fail_stream("1", rate_limit(2.0))
        run_log = Mock(spec=RunLog)

        make_controller(fake_box, sleep, run_log=run_log).run("0", tmp_path)

        errors = [c.args[0] for c in run_log.error.call_args_list]
        infos = [c.args[0] for c in run_log.info.call_args_list]
        assert any(m.startswith("Rate Limit Exceeded") for m in errors)
        assert (
            "Rate limit exceeded for root folder ID 0. Retrying after 2 seconds."
            in infos
        )
        assert "Download completed successfully for root folder ID 0" in infos

    def test_failure_is_logged_as_error(self, fake_box, tmp_path, sleep):
        """Test that a terminal failure reaches the error log."""
        fake_box.fail_listing("0", BoxAPIError("boom", status_code=500))
        run_log = Mock(spec=RunLog)

        make_controller(fake_box, sleep, run_log=run_log).run("0", tmp_path)

        message = run_log.error.call_args_list[0].args[0]
        assert message.startswith("Error downloading files for root folder ID 0")
        assert "boom" in message
