"""Port interface for a supervised background server.

Defines the lifecycle contract shared by the real process-backed server and
the in-memory fake used to test callers without spawning processes.
"""

from typing import Protocol

from bgserver.domain.connection import ConnectionDescriptor
from bgserver.domain.state import ProcessState


class BackgroundServer(Protocol):
    """Protocol for supervising one long-running server subprocess.

    Lifecycle: start() -> wait_for_init() -> conn_url()/stdout()/stderr() -> stop().
    Only start() and wait_for_init() raise; everything else is an observer or
    idempotent cleanup.
    """

    @property
    def state(self) -> ProcessState:
        """Current lifecycle state."""
        ...

    def start(self) -> None:
        """Start the server.

        Raises:
            InvalidStateError: If the server is not NEW
            SpawnError: If the subprocess could not be created
        """
        ...

    def wait_for_init(self) -> None:
        """Block until a client connection to the server succeeds.

        Raises:
            InvalidStateError: If the server is not RUNNING
            ReadinessTimeoutError: If the deadline passed first
            ServerExitedError: If the process exited while waiting
        """
        ...

    def stop(self) -> None:
        """Stop the server and release its resources.

        Safe in every state and idempotent. Never raises.
        """
        ...

    def stdout(self) -> str:
        """Return the entire captured stdout ("" if none yet)."""
        ...

    def stderr(self) -> str:
        """Return the entire captured stderr ("" if none yet)."""
        ...

    def conn_url(self) -> ConnectionDescriptor | None:
        """Return the connection descriptor, or None unless RUNNING."""
        ...
