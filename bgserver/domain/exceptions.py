"""Domain exceptions for background server supervision.

Start-time and readiness errors are raised to the caller (test setup fails).
Cleanup-time errors (StopError) are logged by the supervisor and never raised
out of stop().
"""


class BackgroundServerError(Exception):
    """Base exception for all supervisor errors.

    Attributes:
        message: User-facing error message.
        hint: Optional actionable suggestion.
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


class InvalidStateError(BackgroundServerError):
    """Raised when an operation is called in a state that does not allow it."""

    pass


class SpawnError(BackgroundServerError):
    """Raised when the subprocess could not be created.

    Attributes:
        errno: errno of the underlying OS failure, if any.
    """

    def __init__(
        self, message: str, hint: str | None = None, errno: int | None = None
    ) -> None:
        super().__init__(message, hint=hint)
        self.errno = errno


class ReadinessTimeoutError(BackgroundServerError):
    """Raised when the server did not accept a connection before the deadline.

    Attributes:
        attempts: Number of probe attempts made.
        elapsed: Seconds spent polling.
        last_error: Last transient error seen by the probe, if any.
    """

    def __init__(
        self,
        message: str,
        attempts: int,
        elapsed: float,
        last_error: BaseException | None = None,
    ) -> None:
        super().__init__(
            message,
            hint="Check the server's stderr, or raise the readiness timeout",
        )
        self.attempts = attempts
        self.elapsed = elapsed
        self.last_error = last_error


class ServerExitedError(BackgroundServerError):
    """Raised when the subprocess exits while it is still required.

    Attributes:
        returncode: Exit status of the process (negative for a signal).
    """

    def __init__(self, message: str, returncode: int | None) -> None:
        super().__init__(message, hint="Check the server's stderr for the cause")
        self.returncode = returncode


class StopError(BackgroundServerError):
    """Signal delivery or kill failure during stop().

    Never raised out of stop(); the supervisor logs it instead.
    """

    pass
