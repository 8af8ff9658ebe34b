"""Log sinks for captured process output.

- file_log_writer.py: file-backed sink, re-read from disk on every inspection
- memory_log_writer.py: lock-guarded in-memory sink
"""

from bgserver.adapters.logs.file_log_writer import FileLogWriter
from bgserver.adapters.logs.memory_log_writer import MemoryLogWriter

__all__ = ["FileLogWriter", "MemoryLogWriter"]
