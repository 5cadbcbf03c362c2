"""Transfer operations: one remote file to one local path."""

import logging
from pathlib import Path
from typing import Callable, Optional

from ..api import BoxClient
from ..exceptions import BoxFileError
from ..models import RemoteEntry
from ..utils import DEFAULT_CHUNK_SIZE

logger = logging.getLogger(__name__)

PARTIAL_SUFFIX = ".part"


def partial_path(destination: Path) -> Path:
    """Return the temporary path a download is written to before completion."""
    return destination.with_name(destination.name + PARTIAL_SUFFIX)


class TransferOperations:
    """Local side effects of a mirror run: directories and file downloads."""

    def __init__(self, client: BoxClient, chunk_size: int = DEFAULT_CHUNK_SIZE):
        """Initialize transfer operations.

        Args:
            client: Box API client
            chunk_size: Chunk size used when copying download streams
        """
        self.client = client
        self.chunk_size = chunk_size

    def transfer(
        self,
        entry: RemoteEntry,
        destination: Path,
        progress_callback: Optional[Callable[[int], None]] = None,
    ) -> int:
        """Download a remote file to ``destination``.

        Data is written to ``<destination>.part`` and moved onto the
        destination only after the source stream reached its end, so an
        interrupted download never leaves a truncated file under the final
        name. An existing destination is overwritten.

        Args:
            entry: Remote file to download
            destination: Local file path
            progress_callback: Optional callback function(bytes_written)

        Returns:
            Number of bytes written

        Raises:
            BoxAPIError: If the remote stream cannot be opened or breaks
            BoxFileError: If the local file cannot be written
        """
        bytes_written = 0
        partial = partial_path(destination)
        with self.client.open_read_stream(
            entry.id, chunk_size=self.chunk_size
        ) as chunks:
            try:
                f = open(partial, "wb")
            except OSError as e:
                raise BoxFileError(
                    f"Cannot open {partial} for writing: {e}", path=destination
                ) from e

            with f:
                for chunk in chunks:
                    if not chunk:
                        continue
                    try:
                        f.write(chunk)
                    except OSError as e:
                        raise BoxFileError(
                            f"Failed to write {partial}: {e}", path=destination
                        ) from e
                    bytes_written += len(chunk)
                    if progress_callback:
                        progress_callback(bytes_written)

        try:
            partial.replace(destination)
        except OSError as e:
            raise BoxFileError(
                f"Cannot move {partial} to {destination}: {e}", path=destination
            ) from e

        logger.debug(f"Wrote {bytes_written} bytes for file {entry.id} to {destination}")
        return bytes_written

    def ensure_directory(self, path: Path) -> None:
        """Create ``path`` (and parents) unless it already exists.

        Raises:
            BoxFileError: If the directory cannot be created
        """
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BoxFileError(f"Cannot create directory {path}: {e}", path=path) from e
