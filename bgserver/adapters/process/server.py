"""Process-backed background server (start/wait/stop).

Handles spawning, readiness polling, output capture and stopping of a single
server subprocess.
"""

import contextlib
import logging
import os
import shutil
import signal
import subprocess
import tempfile
import threading
import time
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import IO

from bgserver.adapters.logs.file_log_writer import FileLogWriter
from bgserver.adapters.process.environment import (
    IdentityLookup,
    current_identity,
    default_env,
)
from bgserver.domain.timeouts import ServerTimeouts
from bgserver.adapters.readiness.probes import TcpProbe
from bgserver.core.readiness import ReadinessPoller
from bgserver.domain.config import ReadinessConfig, ShutdownConfig
from bgserver.domain.connection import ConnectionDescriptor
from bgserver.domain.exceptions import (
    InvalidStateError,
    ServerExitedError,
    SpawnError,
    StopError,
)
from bgserver.domain.state import ProcessState, ProcessStateMachine
from bgserver.ports.logs import LogWriter
from bgserver.ports.probe import ReadinessProbe

logger = logging.getLogger(__name__)


class ProcessServer:
    """BackgroundServer backed by a real OS subprocess.

    Output is drained by one thread per stream into FileLogWriters in a
    private bgserver-* directory (stdout.log, stderr.log), created at start()
    and exposed as log_dir. The process runs in its own session so stop() can
    signal it together with any children it spawned, including children left
    behind after the process itself exited.

    conn_url() returns None until the server is RUNNING, and again once it
    has stopped or failed.

    Example:
        server = ProcessServer(
            ["cockroach", "start-single-node", "--insecure", "--listen-addr=localhost:26257"],
            ConnectionDescriptor("localhost", 26257, scheme="postgresql", username="root"),
        )
        with server:
            server.wait_for_init()
            connect(server.conn_url().to_url())
    """

    def __init__(
        self,
        command: Sequence[str],
        descriptor: ConnectionDescriptor | None = None,
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
        log_dir: Path | None = None,
        readiness: ReadinessConfig | None = None,
        shutdown: ShutdownConfig | None = None,
        probe: ReadinessProbe | None = None,
        identity: IdentityLookup = current_identity,
    ):
        """Initialize the server. Nothing is spawned until start().

        Args:
            command: Argument vector; command[0] is resolved against the
                     resolved environment's PATH
            descriptor: Address the server will listen on. Required for
                        wait_for_init() and conn_url().
            env: Environment overrides, layered over default_env()
            cwd: Working directory for the process
            log_dir: Parent directory for captured output. Every server
                     creates its own bgserver-* subdirectory in it (default:
                     the system temporary directory).
            readiness: Readiness polling configuration
            shutdown: Shutdown escalation configuration
            probe: Readiness probe (default: TcpProbe)
            identity: OS identity lookup used to seed the environment

        Raises:
            ValueError: If command is empty
        """
        if not command:
            raise ValueError("command must not be empty")

        self.command = [str(arg) for arg in command]
        self.descriptor = descriptor
        self.env = dict(env) if env is not None else None
        self.cwd = cwd
        self.log_root = Path(log_dir) if log_dir is not None else None
        self.log_dir: Path | None = None
        self.readiness = readiness or ReadinessConfig()
        self.shutdown = shutdown or ShutdownConfig()
        self.probe = probe or TcpProbe()
        self._identity = identity

        self._machine = ProcessStateMachine()
        self._lifecycle_lock = threading.Lock()
        self._process: subprocess.Popen | None = None
        self._stdout: LogWriter | None = None
        self._stderr: LogWriter | None = None
        self._drains: list[threading.Thread] = []
        self._released = False

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    @property
    def state(self) -> ProcessState:
        """Current lifecycle state."""
        return self._machine.state

    @property
    def pid(self) -> int | None:
        """PID of the subprocess, or None if it was never spawned."""
        return self._process.pid if self._process else None

    @property
    def returncode(self) -> int | None:
        """Exit status once the process has exited and been reaped."""
        return self._process.returncode if self._process else None

    def stdout(self) -> str:
        """Return the entire captured stdout."""
        return self._stdout.string() if self._stdout else ""

    def stderr(self) -> str:
        """Return the entire captured stderr."""
        return self._stderr.string() if self._stderr else ""

    def conn_url(self) -> ConnectionDescriptor | None:
        """Return the connection descriptor while RUNNING, else None."""
        if self.state is not ProcessState.RUNNING:
            return None
        return self.descriptor

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------

    def _open_log_writers(self) -> None:
        """Create this server's capture directory and log files."""
        if self.log_root is not None:
            self.log_root.mkdir(parents=True, exist_ok=True)
        self.log_dir = Path(tempfile.mkdtemp(prefix="bgserver-", dir=self.log_root))
        self._stdout = FileLogWriter(self.log_dir / "stdout.log")
        self._stderr = FileLogWriter(self.log_dir / "stderr.log")

    def _close_log_writers(self) -> None:
        """Close both log writers. Content stays readable from disk."""
        for writer in (self._stdout, self._stderr):
            if writer is None:
                continue
            try:
                writer.close()
            except OSError as e:
                logger.warning(f"Failed to close log writer {writer!r}: {e}")

    def _spawn_process(self, env: dict[str, str]) -> subprocess.Popen:
        """Spawn the subprocess with piped output.

        Args:
            env: Complete environment for the process

        Returns:
            The spawned process
        """
        logger.info(f"Starting {self.command[0]}...")
        logger.debug(f"Command: {self.command}")

        return subprocess.Popen(
            self.command,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
            cwd=self.cwd,
            env=env,
            start_new_session=True,  # Own process group, signalled as a whole
        )

    def _start_drains(self, process: subprocess.Popen) -> None:
        """Start one copying thread per output stream."""
        streams = (
            ("stdout", process.stdout, self._stdout),
            ("stderr", process.stderr, self._stderr),
        )
        for name, pipe, writer in streams:
            thread = threading.Thread(
                target=self._drain,
                args=(pipe, writer, name),
                name=f"bgserver-{name}-{process.pid}",
                daemon=True,
            )
            thread.start()
            self._drains.append(thread)

    def _drain(self, pipe: IO[bytes], writer: LogWriter, name: str) -> None:
        """Copy a pipe into a log writer until EOF.

        Args:
            pipe: Readable end of the process' stream
            writer: Destination log writer
            name: Stream name for log messages
        """
        write_failed = False
        try:
            for chunk in iter(lambda: pipe.read1(ServerTimeouts.DRAIN_CHUNK_SIZE), b""):
                if write_failed:
                    continue  # Keep reading so the process never blocks on a full pipe
                try:
                    self._write_fully(writer, chunk)
                except OSError as e:
                    write_failed = True
                    logger.warning(f"Failed to capture {name}, dropping further output: {e}")
        except ValueError:
            # Pipe or writer closed by stop()
            logger.debug(f"{name} drain closed")
        except OSError as e:
            logger.debug(f"{name} drain stopped: {e}")
        finally:
            with contextlib.suppress(OSError):
                pipe.close()

    @staticmethod
    def _write_fully(writer: LogWriter, data: bytes) -> None:
        """Write all of data, retrying short writes.

        Raises:
            OSError: If the writer makes no progress
        """
        while data:
            written = writer.write(data)
            if written <= 0:
                raise OSError(f"Short write to {writer!r}: 0 of {len(data)} bytes")
            data = data[written:]

    def start(self) -> None:
        """Start the server.

        Raises:
            InvalidStateError: If the server is not NEW
            SpawnError: If the process could not be created (state -> FAILED)
        """
        with self._lifecycle_lock:
            self._machine.require(ProcessState.NEW, "start")

            try:
                self._open_log_writers()
                env = default_env(self.env, identity=self._identity)
                process = self._spawn_process(env)
            except OSError as e:
                self._machine.transition(ProcessState.FAILED)
                self._close_log_writers()
                logger.error(f"Failed to start {self.command[0]}: {e}")
                raise SpawnError(
                    f"Failed to start {self.command[0]}: {e}",
                    hint="Check that the binary exists, is executable and is on PATH",
                    errno=e.errno,
                ) from e

            self._process = process
            self._start_drains(process)
            self._machine.transition(ProcessState.RUNNING)
            logger.info(f"Server started with PID {process.pid}")

    # ------------------------------------------------------------------
    # Readiness
    # ------------------------------------------------------------------

    def _poll_exit(self) -> int | None:
        """Return the exit code if the process has exited, else None."""
        if self._process is None:
            return None
        return self._process.poll()

    def _stderr_tail(self) -> str:
        """Return the end of captured stderr for error reporting."""
        return self.stderr()[-ServerTimeouts.STDERR_TAIL_BYTES :].strip()

    def wait_for_init(self) -> None:
        """Retry until a client connection to the server succeeds.

        Raises:
            InvalidStateError: If the server is not RUNNING or has no descriptor
            ReadinessTimeoutError: If the readiness deadline passed
            ServerExitedError: If the process exited first (state -> FAILED)
        """
        self._machine.require(ProcessState.RUNNING, "wait_for_init")
        if self.descriptor is None:
            raise InvalidStateError(
                "wait_for_init() needs a connection descriptor",
                hint="Pass descriptor= when creating the server",
            )

        poller = ReadinessPoller(self.probe, self.readiness)
        try:
            poller.wait(self.descriptor, exit_check=self._poll_exit)
        except ServerExitedError as e:
            if self._machine.try_transition(ProcessState.FAILED):
                logger.error(f"Server (PID {self.pid}) exited during startup: {e}")
            # Let the drains catch up so the error includes the last output
            self._join_drains(self.shutdown.drain_timeout)
            message = e.message
            tail = self._stderr_tail()
            if tail:
                message += f"\nStderr: {tail}"
            if self.log_dir is not None:
                message += f"\nCheck server logs at: {self.log_dir}"
            raise ServerExitedError(message, returncode=e.returncode) from None

    def wait(self, timeout: float | None = None) -> int | None:
        """Block until the process exits on its own.

        Does not change the lifecycle state; call stop() afterwards to
        release the log writers.

        Args:
            timeout: Seconds to wait, or None to wait indefinitely

        Returns:
            Exit code, or None if never spawned or still running at timeout
        """
        if self._process is None:
            return None
        try:
            return self._process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            return None

    # ------------------------------------------------------------------
    # Stop
    # ------------------------------------------------------------------

    def _send_signal_and_wait(
        self, process: subprocess.Popen, sig: signal.Signals, timeout_secs: float
    ) -> bool | None:
        """Signal the process group and wait for the process to exit.

        Args:
            process: Process to signal
            sig: Signal to send (SIGTERM or SIGKILL)
            timeout_secs: Seconds to wait for exit

        Returns:
            True if the process exited, False if still alive after timeout,
            None if the signal could not be delivered
        """
        try:
            os.killpg(process.pid, sig)
        except OSError as e:
            logger.debug(f"Failed to send {sig.name} to process group {process.pid}: {e}")
            return None

        try:
            process.wait(timeout=timeout_secs)
            return True
        except subprocess.TimeoutExpired:
            return False

    def _stop_with_sigterm(self, process: subprocess.Popen) -> bool | None:
        """Attempt graceful shutdown with SIGTERM.

        Returns:
            True if stopped, False if still alive, None if signal failed
        """
        logger.info(f"Stopping server (PID {process.pid})...")
        result = self._send_signal_and_wait(
            process, signal.SIGTERM, self.shutdown.grace_period
        )

        if result is True:
            logger.info("Server stopped gracefully")
        elif result is None and process.poll() is not None:
            logger.info("Process already dead")
            return True

        return result

    def _stop_with_sigkill(self, process: subprocess.Popen) -> None:
        """Force kill with SIGKILL as last resort.

        Raises:
            StopError: If the process could not be killed
        """
        logger.warning("Server did not stop gracefully, sending SIGKILL...")
        result = self._send_signal_and_wait(
            process, signal.SIGKILL, self.shutdown.kill_wait
        )

        if result is True:
            logger.info("Server force-killed")
            return

        if result is None and process.poll() is not None:
            logger.info("Process died before SIGKILL")
            return

        if result is None:
            raise StopError(f"Failed to send SIGKILL to server (PID {process.pid})")
        raise StopError(f"Server (PID {process.pid}) survived SIGKILL")

    def _group_alive(self, pgid: int) -> bool:
        """Return True while any process is left in the process group."""
        try:
            os.killpg(pgid, 0)
        except ProcessLookupError:
            return False
        except PermissionError:
            return True
        return True

    def _signal_group_and_wait(
        self, pgid: int, sig: signal.Signals, timeout_secs: float
    ) -> bool:
        """Signal a process group and wait for it to empty.

        Returns:
            True if no process is left in the group, False after timeout
        """
        try:
            os.killpg(pgid, sig)
        except ProcessLookupError:
            return True
        except OSError as e:
            logger.debug(f"Failed to send {sig.name} to process group {pgid}: {e}")
            return False

        deadline = time.monotonic() + timeout_secs
        while time.monotonic() < deadline:
            if not self._group_alive(pgid):
                return True
            time.sleep(ServerTimeouts.GROUP_POLL_INTERVAL)
        return not self._group_alive(pgid)

    def _stop_process_group(self, pgid: int) -> None:
        """Stop processes left in the server's group after the leader exited.

        A daemonizing server forks the real server and exits; its children
        stay in the group and keep the output pipes open.
        """
        if not self._group_alive(pgid):
            return

        logger.info(f"Stopping processes left in process group {pgid}...")
        if self._signal_group_and_wait(pgid, signal.SIGTERM, self.shutdown.grace_period):
            return

        logger.warning(
            f"Processes in group {pgid} did not stop gracefully, sending SIGKILL..."
        )
        if not self._signal_group_and_wait(pgid, signal.SIGKILL, self.shutdown.kill_wait):
            logger.warning(f"Processes in group {pgid} still present after SIGKILL")

    def _terminate(self, process: subprocess.Popen) -> None:
        """Terminate the process and its group, escalating from SIGTERM to SIGKILL.

        Raises:
            StopError: If the process could not be stopped
        """
        returncode = process.poll()
        if returncode is not None:
            logger.info(f"Server (PID {process.pid}) already exited with code {returncode}")
        elif self._stop_with_sigterm(process) is not True:
            self._stop_with_sigkill(process)

        self._stop_process_group(process.pid)

    def _join_drains(self, timeout_secs: float) -> None:
        """Wait for the drain threads to reach EOF."""
        for thread in self._drains:
            thread.join(timeout_secs)
            if thread.is_alive():
                logger.warning(
                    f"{thread.name} still running after {timeout_secs}s; "
                    "a child process may be holding the pipe open"
                )

    def stop(self) -> None:
        """Stop the server and release its resources.

        Shutdown sequence:
        1. Return early if nothing was ever spawned
        2. Send SIGTERM and wait up to grace_period seconds
        3. If still alive, send SIGKILL and wait up to kill_wait seconds
        4. Stop anything left in the process group the same way, also when
           the process itself had already exited
        5. Join the output drains and close both log writers

        Never raises: failures are logged as StopError. Safe to call repeatedly.
        """
        with self._lifecycle_lock:
            process = self._process
            if process is None:
                logger.debug("Server was never started; nothing to stop")
                return
            if self._released:
                return

            try:
                self._terminate(process)
            except (StopError, OSError) as e:
                logger.error(f"Failed to stop server (PID {process.pid}): {e}")
            finally:
                self._join_drains(self.shutdown.drain_timeout)
                self._close_log_writers()
                self._released = True
                if self._machine.try_transition(ProcessState.STOPPED):
                    logger.info(f"Server (PID {process.pid}) stopped")

    def cleanup_logs(self) -> None:
        """Delete this server's capture directory.

        The directory is kept after stop() so output can be inspected; call
        this once it is no longer needed. stdout() and stderr() return ""
        afterwards. Safe to call repeatedly.

        Raises:
            InvalidStateError: If the process was spawned and stop() has not
                               released it yet
        """
        with self._lifecycle_lock:
            if self._process is not None and not self._released:
                raise InvalidStateError(
                    "cleanup_logs() requires a stopped server",
                    hint="Call stop() first",
                )
            if self.log_dir is None:
                return
            shutil.rmtree(self.log_dir, ignore_errors=True)
            logger.debug(f"Removed capture directory {self.log_dir}")

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> "ProcessServer":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def __repr__(self) -> str:
        return f"ProcessServer({self.command[0]!r}, state={self.state.value}, pid={self.pid})"
