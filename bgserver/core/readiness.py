"""Readiness polling.

Repeatedly probes a server until one connection attempt succeeds, backing off
between attempts and giving up at an overall deadline.
"""

import logging
import time
from collections.abc import Callable

from bgserver.domain.config import ReadinessConfig
from bgserver.domain.connection import ConnectionDescriptor
from bgserver.domain.exceptions import ReadinessTimeoutError, ServerExitedError
from bgserver.ports.probe import ReadinessProbe

logger = logging.getLogger(__name__)

ExitCheck = Callable[[], int | None]


class ReadinessPoller:
    """Bounded retry loop around a ReadinessProbe."""

    def __init__(
        self,
        probe: ReadinessProbe,
        config: ReadinessConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize poller.

        Args:
            probe: Probe used for each attempt
            config: Timing configuration (default: ReadinessConfig())
            clock: Monotonic clock, injectable for tests
            sleep: Sleep function, injectable for tests
        """
        self.probe = probe
        self.config = config or ReadinessConfig()
        self._clock = clock
        self._sleep = sleep

    def wait(
        self,
        descriptor: ConnectionDescriptor,
        exit_check: ExitCheck | None = None,
    ) -> int:
        """Probe descriptor until it accepts a connection.

        Transient OSErrors (refused, reset, timed out) are retried and only
        reported through the final timeout error.

        Args:
            descriptor: Address to probe
            exit_check: Returns the process' exit code once it has exited,
                        None while it is alive. Polling stops early if it exits.

        Returns:
            Number of attempts it took

        Raises:
            ReadinessTimeoutError: If the deadline passed without a success
            ServerExitedError: If exit_check reports the process has exited
        """
        config = self.config
        start = self._clock()
        deadline = start + config.timeout
        delay = config.interval
        attempts = 0
        last_error: OSError | None = None

        while True:
            remaining = deadline - self._clock()
            if remaining <= 0:
                break

            attempts += 1
            try:
                self.probe.check(descriptor, min(config.connect_timeout, remaining))
            except OSError as e:
                last_error = e
                logger.debug(f"Readiness attempt {attempts} to {descriptor.address} failed: {e}")
            else:
                elapsed = self._clock() - start
                logger.info(
                    f"Server at {descriptor.address} is ready "
                    f"(took {elapsed:.1f}s, {attempts} attempt(s))"
                )
                return attempts

            if exit_check is not None:
                returncode = exit_check()
                if returncode is not None:
                    raise ServerExitedError(
                        f"Server exited with code {returncode} before accepting connections",
                        returncode=returncode,
                    )

            remaining = deadline - self._clock()
            if remaining <= 0:
                break
            self._sleep(min(delay, remaining))
            delay = min(delay * config.backoff, config.max_interval)

        elapsed = self._clock() - start
        message = (
            f"Server at {descriptor.address} not ready after {elapsed:.1f}s "
            f"({attempts} attempt(s))"
        )
        if last_error is not None:
            message += f": {last_error}"
        raise ReadinessTimeoutError(
            message, attempts=attempts, elapsed=elapsed, last_error=last_error
        )
