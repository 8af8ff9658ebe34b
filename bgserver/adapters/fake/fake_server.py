"""In-memory BackgroundServer for testing callers without spawning processes."""

import threading

from bgserver.adapters.logs.memory_log_writer import MemoryLogWriter
from bgserver.domain.connection import ConnectionDescriptor
from bgserver.domain.exceptions import (
    BackgroundServerError,
    ReadinessTimeoutError,
    ServerExitedError,
)
from bgserver.domain.state import ProcessState, ProcessStateMachine


class FakeBackgroundServer:
    """Scriptable BackgroundServer that never touches the OS.

    Follows the same state machine as ProcessServer. Output is captured in
    MemoryLogWriters and can be appended to with emit_stdout()/emit_stderr().

    Attributes:
        start_calls: Number of start() calls
        wait_calls: Number of wait_for_init() calls
        stop_calls: Number of stop() calls
    """

    def __init__(
        self,
        descriptor: ConnectionDescriptor | None = None,
        stdout: str = "",
        stderr: str = "",
        start_error: BackgroundServerError | None = None,
        ready_after: int = 1,
        exit_code: int | None = None,
    ):
        """Initialize fake server.

        Args:
            descriptor: Descriptor returned by conn_url() while RUNNING
            stdout: Text "written" to stdout when the server starts
            stderr: Text "written" to stderr when the server starts
            start_error: If set, start() raises it and the state becomes FAILED
            ready_after: Number of wait_for_init() calls that fail with
                         ReadinessTimeoutError before one succeeds (1 means
                         the first call succeeds)
            exit_code: If set, wait_for_init() reports the server exited with
                       this code and the state becomes FAILED
        """
        self.descriptor = descriptor or ConnectionDescriptor("127.0.0.1", 26257)
        self._initial_stdout = stdout
        self._initial_stderr = stderr
        self.start_error = start_error
        self.ready_after = ready_after
        self.exit_code = exit_code

        self._machine = ProcessStateMachine()
        self._lock = threading.Lock()
        self._stdout = MemoryLogWriter()
        self._stderr = MemoryLogWriter()
        self._started = False

        self.start_calls = 0
        self.wait_calls = 0
        self.stop_calls = 0

    @property
    def state(self) -> ProcessState:
        """Current lifecycle state."""
        return self._machine.state

    def start(self) -> None:
        """Pretend to spawn the server."""
        with self._lock:
            self.start_calls += 1
            self._machine.require(ProcessState.NEW, "start")
            if self.start_error is not None:
                self._machine.transition(ProcessState.FAILED)
                raise self.start_error
            self._started = True
            self._stdout.write(self._initial_stdout.encode("utf-8"))
            self._stderr.write(self._initial_stderr.encode("utf-8"))
            self._machine.transition(ProcessState.RUNNING)

    def wait_for_init(self) -> None:
        """Succeed, time out or report an exit according to the script."""
        self._machine.require(ProcessState.RUNNING, "wait_for_init")
        with self._lock:
            self.wait_calls += 1
            attempt = self.wait_calls

        if self.exit_code is not None:
            self._machine.try_transition(ProcessState.FAILED)
            raise ServerExitedError(
                f"Server exited with code {self.exit_code} before accepting connections",
                returncode=self.exit_code,
            )
        if attempt < self.ready_after:
            raise ReadinessTimeoutError(
                f"Server at {self.descriptor.address} not ready (fake attempt {attempt})",
                attempts=attempt,
                elapsed=0.0,
            )

    def stop(self) -> None:
        """Close the fake's log writers. Safe in every state."""
        with self._lock:
            self.stop_calls += 1
            if not self._started:
                return
            self._stdout.close()
            self._stderr.close()
            self._machine.try_transition(ProcessState.STOPPED)

    def emit_stdout(self, text: str) -> None:
        """Append text to captured stdout, as the process would."""
        self._stdout.write(text.encode("utf-8"))

    def emit_stderr(self, text: str) -> None:
        """Append text to captured stderr, as the process would."""
        self._stderr.write(text.encode("utf-8"))

    def stdout(self) -> str:
        """Return captured stdout."""
        return self._stdout.string()

    def stderr(self) -> str:
        """Return captured stderr."""
        return self._stderr.string()

    def conn_url(self) -> ConnectionDescriptor | None:
        """Return the descriptor while RUNNING, else None."""
        if self.state is not ProcessState.RUNNING:
            return None
        return self.descriptor

    def __enter__(self) -> "FakeBackgroundServer":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
