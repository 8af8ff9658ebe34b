"""In-memory log writer.

A growing buffer guarded by a lock shared between the writer and readers.
Used by the fake server, and anywhere a log file is not wanted.
"""

import threading


class MemoryLogWriter:
    """LogWriter backed by an in-memory buffer."""

    def __init__(self, initial: bytes = b""):
        self._buffer = bytearray(initial)
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        """True once close() has been called."""
        return self._closed

    def write(self, data: bytes) -> int:
        """Append bytes to the buffer.

        Raises:
            ValueError: If the writer has been closed
        """
        with self._lock:
            if self._closed:
                raise ValueError("write to closed log writer")
            self._buffer.extend(data)
            return len(data)

    def string(self) -> str:
        """Return the buffer content, decoded as UTF-8."""
        with self._lock:
            return self._buffer.decode("utf-8", errors="replace")

    def length(self) -> int:
        """Return the buffer size in bytes."""
        with self._lock:
            return len(self._buffer)

    def close(self) -> None:
        """Stop accepting writes. Content stays readable."""
        with self._lock:
            self._closed = True

    def __str__(self) -> str:
        return self.string()

    def __len__(self) -> int:
        return self.length()
