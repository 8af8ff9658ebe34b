"""Test helper utilities for the bgserver test suite."""

from tests.helpers.process_helpers import (
    free_port,
    python_command,
    wait_until,
)

__all__ = [
    "free_port",
    "python_command",
    "wait_until",
]
