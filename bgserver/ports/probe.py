"""Port interface for readiness probes.

A probe is the one capability the supervisor needs from the client that
speaks the server's wire protocol: attempt a connection, succeed or fail.
"""

from typing import Protocol

from bgserver.domain.connection import ConnectionDescriptor


class ReadinessProbe(Protocol):
    """Protocol for a single readiness check."""

    def check(self, descriptor: ConnectionDescriptor, timeout: float) -> None:
        """Attempt one connection and close it immediately.

        Args:
            descriptor: Where the server is expected to listen
            timeout: Seconds allowed for this attempt

        Raises:
            OSError: If the attempt failed in a way worth retrying
                     (refused, reset, timed out, ...)
        """
        ...
