"""Port interface for captured process output.

Defines the log sink a supervised process writes into while test code reads it.
"""

from typing import Protocol


class LogWriter(Protocol):
    """Protocol for an append-only, independently readable log sink.

    A single writer (the drain of one process stream) appends with write().
    Readers may call string() and length() at any time, concurrently with
    writes; they observe a prefix of, or the full, content written so far.
    """

    def write(self, data: bytes) -> int:
        """Append bytes to the log.

        Args:
            data: Bytes to append

        Returns:
            Number of bytes actually written (may be short)

        Raises:
            OSError: If the underlying store fails
            ValueError: If the writer has been closed
        """
        ...

    def string(self) -> str:
        """Return the entire captured content as text.

        Read errors are treated as "no content yet" and return "".
        """
        ...

    def length(self) -> int:
        """Return the captured length in bytes.

        Read errors are treated as "no content yet" and return 0.
        """
        ...

    def close(self) -> None:
        """Release the underlying resource. Safe to call more than once."""
        ...
