"""File-backed log writer.

The file is the source of truth for both the live write stream and later
read-back. Reads never use a cached snapshot: string() and length() go to the
filesystem on every call, so they reflect whatever the writer has flushed,
even when the writer's buffering is outside the reader's control.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class FileLogWriter:
    """LogWriter backed by a file on disk."""

    def __init__(self, path: Path):
        """Create (or truncate) the log file.

        Args:
            path: Log file path. Parent directories are created.

        Raises:
            OSError: If the file cannot be created
        """
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Unbuffered: every write() reaches the OS immediately
        self._file = open(self.path, "wb", buffering=0)

    @property
    def closed(self) -> bool:
        """True once close() has been called."""
        return self._file.closed

    def write(self, data: bytes) -> int:
        """Append bytes to the file.

        Args:
            data: Bytes to append

        Returns:
            Number of bytes written. A raw file may write fewer bytes than
            requested; callers must retry the remainder.

        Raises:
            OSError: If the write fails
            ValueError: If the writer has been closed
        """
        written = self._file.write(data)
        return written or 0

    def string(self) -> str:
        """Return the file's entire content, decoded as UTF-8."""
        try:
            return self.path.read_bytes().decode("utf-8", errors="replace")
        except OSError:
            logger.debug(f"Could not read log file {self.path}")
            return ""

    def length(self) -> int:
        """Return the file size in bytes."""
        try:
            return self.path.stat().st_size
        except OSError:
            logger.debug(f"Could not stat log file {self.path}")
            return 0

    def close(self) -> None:
        """Close the file handle. Repeated calls are no-ops."""
        self._file.close()

    def __str__(self) -> str:
        return self.string()

    def __len__(self) -> int:
        return self.length()

    def __repr__(self) -> str:
        return f"FileLogWriter({str(self.path)!r})"
