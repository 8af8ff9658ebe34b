"""Unit tests for FakeBackgroundServer."""

import pytest

from bgserver.adapters.fake import FakeBackgroundServer
from bgserver.domain.connection import ConnectionDescriptor
from bgserver.domain.exceptions import (
    InvalidStateError,
    ReadinessTimeoutError,
    ServerExitedError,
    SpawnError,
)
from bgserver.domain.state import ProcessState


class TestFakeLifecycle:
    """The fake follows the same state machine as the real server."""

    def test_happy_path(self) -> None:
        descriptor = ConnectionDescriptor("localhost", 5432, scheme="postgresql")
        server = FakeBackgroundServer(descriptor, stdout="listening\n")

        assert server.conn_url() is None
        server.start()
        server.wait_for_init()

        assert server.state is ProcessState.RUNNING
        assert server.conn_url() == descriptor
        assert server.stdout() == "listening\n"

        server.stop()
        assert server.state is ProcessState.STOPPED
        assert server.conn_url() is None
        assert server.stdout() == "listening\n"

    def test_default_descriptor(self) -> None:
        server = FakeBackgroundServer()
        assert server.descriptor.address == ("127.0.0.1", 26257)

    def test_start_error(self) -> None:
        server = FakeBackgroundServer(start_error=SpawnError("no such binary"))

        with pytest.raises(SpawnError):
            server.start()

        assert server.state is ProcessState.FAILED
        server.stop()
        assert server.state is ProcessState.FAILED

    def test_ready_after_retries(self) -> None:
        server = FakeBackgroundServer(ready_after=3)
        server.start()

        for _ in range(2):
            with pytest.raises(ReadinessTimeoutError):
                server.wait_for_init()
        server.wait_for_init()

        assert server.wait_calls == 3
        assert server.state is ProcessState.RUNNING

    def test_exit_during_init(self) -> None:
        server = FakeBackgroundServer(stderr="panic\n", exit_code=2)
        server.start()

        with pytest.raises(ServerExitedError) as exc_info:
            server.wait_for_init()

        assert exc_info.value.returncode == 2
        assert server.state is ProcessState.FAILED
        assert server.stderr() == "panic\n"

    def test_wait_for_init_requires_start(self) -> None:
        with pytest.raises(InvalidStateError):
            FakeBackgroundServer().wait_for_init()

    def test_stop_before_start_is_noop(self) -> None:
        server = FakeBackgroundServer()
        server.stop()
        assert server.state is ProcessState.NEW
        assert server.stop_calls == 1

    def test_emit_output(self) -> None:
        server = FakeBackgroundServer()
        server.start()
        server.emit_stdout("a\n")
        server.emit_stderr("b\n")
        server.emit_stdout("c\n")

        assert server.stdout() == "a\nc\n"
        assert server.stderr() == "b\n"

    def test_context_manager_counts_calls(self) -> None:
        with FakeBackgroundServer() as server:
            server.wait_for_init()

        assert (server.start_calls, server.wait_calls, server.stop_calls) == (1, 1, 1)
        assert server.state is ProcessState.STOPPED
