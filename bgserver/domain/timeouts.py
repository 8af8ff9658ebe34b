"""Centralized timeout configuration for supervised processes.

All supervisor timing values are defined here to:
1. Provide a single source of truth for tuning
2. Document the purpose of each timeout value
3. Supply the defaults of the configurable values in domain/config.py
"""


class ServerTimeouts:
    """Centralized timeout configuration for supervised processes.

    All values are in seconds unless otherwise noted.

    Groups:
        READY_*: Waiting for the server to accept connections (wait_for_init)
        SIGTERM_*: Graceful shutdown timeouts
        SIGKILL_*: Force kill timeouts
        GROUP_*: Processes left in the server's process group
        DRAIN_*: Output capture threads
    """

    # =========================================================================
    # Readiness Polling
    # =========================================================================

    READY_WAIT_DEFAULT: float = 30.0
    """Overall deadline for wait_for_init().

    Database servers used in integration tests usually accept connections
    within a few seconds; 30s leaves room for slow CI machines and first-run
    initialization (creating a data directory, generating certificates).
    """

    READY_CHECK_INTERVAL: float = 0.1
    """Delay before the second readiness attempt.

    The delay grows by READY_BACKOFF after every failed attempt, so fast
    servers are detected quickly without hammering slow ones.
    """

    READY_MAX_INTERVAL: float = 1.0
    """Upper bound for the delay between readiness attempts."""

    READY_BACKOFF: float = 2.0
    """Multiplier applied to the delay after each failed attempt.

    1.0 gives a fixed interval.
    """

    READY_CONNECT_TIMEOUT: float = 2.0
    """Timeout for a single readiness attempt.

    Clamped to the time left before READY_WAIT_DEFAULT expires, so one hung
    attempt cannot push wait_for_init() far past its deadline.
    """

    # =========================================================================
    # Graceful Shutdown (SIGTERM) Timeouts
    # =========================================================================

    SIGTERM_WAIT: float = 10.0
    """Time to wait for graceful shutdown after SIGTERM.

    Gives the server time to flush data and close client connections.
    If it does not exit within this time, SIGKILL is sent.
    """

    # =========================================================================
    # Force Kill (SIGKILL) Timeouts
    # =========================================================================

    SIGKILL_WAIT: float = 2.5
    """Time to wait after sending SIGKILL.

    SIGKILL cannot be caught or ignored, so this is primarily to allow
    the OS to clean up the process. A process surviving SIGKILL is reported
    as a StopError.
    """

    GROUP_POLL_INTERVAL: float = 0.05
    """How often to check whether processes are left in the server's group.

    Children of the server are not ours to wait() on, so their exit is
    detected by polling the process group.
    """

    # =========================================================================
    # Output Drains
    # =========================================================================

    DRAIN_JOIN: float = 5.0
    """Time to wait for the stdout/stderr drain threads after process exit.

    Drains finish when the pipe reaches EOF. A grandchild process that
    inherited the pipe can keep it open; after this timeout the writers are
    closed anyway and the drain's remaining writes are dropped.
    """

    DRAIN_CHUNK_SIZE: int = 64 * 1024
    """Maximum bytes copied from a pipe per read (bytes, not seconds)."""

    STDERR_TAIL_BYTES: int = 2048
    """How much of stderr to include in error messages (bytes)."""
