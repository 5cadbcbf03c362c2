"""Utility functions for boxmirror."""

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

# =============================================================================
# Constants
# =============================================================================

# Box caps folder listings at 1000 items per request
DEFAULT_PAGE_SIZE: int = 1000

# Chunk size used when copying a download stream to disk (1 MB)
DEFAULT_CHUNK_SIZE: int = 1024 * 1024

# Concurrent file transfers per root folder
DEFAULT_WORKERS: int = 4

# Upper bound for a single server-requested rate-limit wait (seconds)
DEFAULT_MAX_RETRY_AFTER: float = 3600.0

DEFAULT_API_URL: str = "https://api.box.com/2.0"


# =============================================================================
# Size formatting utilities
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"


# =============================================================================
# Rate limit utilities
# =============================================================================


def parse_retry_after(
    value: Optional[str], now: Optional[datetime] = None
) -> Optional[float]:
    """Parse a ``Retry-After`` header value into seconds.

    Accepts both forms allowed by RFC 9110: a non-negative integer number
    of seconds, or an HTTP date.

    Args:
        value: Raw header value (may be None)
        now: Reference time for HTTP dates (defaults to current UTC time)

    Returns:
        Seconds to wait (never negative), or None if the value is unusable

    Examples:
        >>> parse_retry_after("2")
        2.0
        >>> parse_retry_after("soon") is None
        True
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None

    if value.isdigit():
        return float(value)

    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if retry_at is None:
        return None
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)

    now = now or datetime.now(timezone.utc)
    return max(0.0, (retry_at - now).total_seconds())


# =============================================================================
# Path utilities
# =============================================================================


def safe_name(name: str) -> str:
    """Make a remote item name usable as a single local path component.

    Path separators and NUL are replaced with underscores, and the special
    names ``.`` and ``..`` are rewritten so a remote name can never climb
    out of its parent directory.

    Examples:
        >>> safe_name("report.pdf")
        'report.pdf'
        >>> safe_name("a/b")
        'a_b'
        >>> safe_name("..")
        '__'
    """
    cleaned = name.replace("/", "_").replace("\\", "_").replace("\x00", "_")
    if cleaned in ("", "."):
        return "_"
    if cleaned == "..":
        return "__"
    return cleaned


def log_timestamp(moment: Optional[datetime] = None) -> str:
    """Return a compact UTC timestamp suitable for log file names.

    Examples:
        >>> log_timestamp(datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc))
        '20240102T030405Z'
    """
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
