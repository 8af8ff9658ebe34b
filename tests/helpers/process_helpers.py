"""Helpers for tests that spawn real processes."""

import socket
import sys
import textwrap
import time
from collections.abc import Callable


def python_command(code: str) -> list[str]:
    """Build an argv that runs a Python snippet in a fresh interpreter.

    Args:
        code: Python source; common indentation is stripped.

    Returns:
        Argument vector for ProcessServer.
    """
    return [sys.executable, "-c", textwrap.dedent(code)]


def free_port() -> int:
    """Return a localhost TCP port that nothing is listening on right now."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def wait_until(
    predicate: Callable[[], bool],
    timeout: float = 10.0,
    interval: float = 0.05,
) -> bool:
    """Poll predicate until it returns True or timeout expires.

    Returns:
        True if the predicate became true, False on timeout.
    """
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()
