"""Readiness probe adapters.

TcpProbe checks that something accepts TCP connections at the descriptor's
address. CallableProbe wraps a real client (database driver, HTTP client) so
readiness means a client-level session could be established, not just that
the port is open.
"""

import contextlib
import logging
import socket
from collections.abc import Callable
from typing import Any

from bgserver.domain.connection import ConnectionDescriptor

logger = logging.getLogger(__name__)


class TcpProbe:
    """Probe that opens and immediately closes a TCP connection."""

    def check(self, descriptor: ConnectionDescriptor, timeout: float) -> None:
        """Connect to descriptor.address.

        Raises:
            ConnectionRefusedError: If nothing is listening yet
            TimeoutError: If the connection attempt timed out
            OSError: For other socket-related errors
        """
        sock = socket.create_connection(descriptor.address, timeout=timeout)
        with contextlib.suppress(OSError):
            sock.close()


Connector = Callable[[ConnectionDescriptor, float], Any]


class CallableProbe:
    """Probe that opens a client session through a user-supplied connector.

    The connector is called as connector(descriptor, timeout) and should
    return a session object; if the session has a close() method it is
    called straight away.

    Example:
        probe = CallableProbe(
            lambda d, t: psycopg.connect(d.to_url(), connect_timeout=int(t) or 1),
            retry_on=(psycopg.OperationalError,),
        )
    """

    def __init__(
        self,
        connector: Connector,
        retry_on: tuple[type[BaseException], ...] = (OSError,),
    ):
        """Initialize probe.

        Args:
            connector: Callable that opens a session to the server
            retry_on: Exception types that mean "not ready yet". Anything
                      else propagates out of wait_for_init() unchanged.
        """
        self.connector = connector
        self.retry_on = retry_on

    def check(self, descriptor: ConnectionDescriptor, timeout: float) -> None:
        """Open and close one session.

        Raises:
            OSError: If the connector failed with a retryable error
        """
        try:
            session = self.connector(descriptor, timeout)
        except OSError:
            raise
        except self.retry_on as e:
            raise ConnectionError(f"Connection to {descriptor.address} failed: {e}") from e

        close = getattr(session, "close", None)
        if callable(close):
            try:
                close()
            except Exception as e:
                # The probe succeeded; a failed close only leaks one session
                logger.debug(f"Error closing readiness probe session: {e}")
