"""Unit tests for the process state machine."""

import threading

import pytest

from bgserver.domain.exceptions import InvalidStateError
from bgserver.domain.state import ProcessState, ProcessStateMachine, can_transition


class TestTransitions:
    """Tests for the allowed transition table."""

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (ProcessState.NEW, ProcessState.RUNNING),
            (ProcessState.NEW, ProcessState.FAILED),
            (ProcessState.RUNNING, ProcessState.STOPPED),
            (ProcessState.RUNNING, ProcessState.FAILED),
        ],
    )
    def test_forward_transitions_are_allowed(
        self, current: ProcessState, target: ProcessState
    ) -> None:
        assert can_transition(current, target)

    @pytest.mark.parametrize("terminal", [ProcessState.STOPPED, ProcessState.FAILED])
    def test_terminal_states_have_no_exits(self, terminal: ProcessState) -> None:
        """Nothing leaves STOPPED or FAILED."""
        assert terminal.is_terminal
        for target in ProcessState:
            assert not can_transition(terminal, target)

    def test_new_cannot_jump_to_stopped(self) -> None:
        """STOPPED requires a prior RUNNING."""
        assert not can_transition(ProcessState.NEW, ProcessState.STOPPED)

    def test_running_cannot_go_back_to_new(self) -> None:
        assert not can_transition(ProcessState.RUNNING, ProcessState.NEW)


class TestProcessStateMachine:
    """Tests for ProcessStateMachine."""

    def test_starts_in_new(self) -> None:
        assert ProcessStateMachine().state is ProcessState.NEW

    def test_transition_returns_previous_state(self) -> None:
        machine = ProcessStateMachine()
        previous = machine.transition(ProcessState.RUNNING)
        assert previous is ProcessState.NEW
        assert machine.state is ProcessState.RUNNING

    def test_illegal_transition_raises_and_keeps_state(self) -> None:
        machine = ProcessStateMachine()
        machine.transition(ProcessState.RUNNING)
        machine.transition(ProcessState.STOPPED)

        with pytest.raises(InvalidStateError, match="stopped to running"):
            machine.transition(ProcessState.RUNNING)
        assert machine.state is ProcessState.STOPPED

    def test_try_transition_reports_refusal(self) -> None:
        machine = ProcessStateMachine()
        assert machine.try_transition(ProcessState.STOPPED) is False
        assert machine.state is ProcessState.NEW
        assert machine.try_transition(ProcessState.FAILED) is True
        assert machine.state is ProcessState.FAILED

    def test_require_passes_for_expected_state(self) -> None:
        ProcessStateMachine().require(ProcessState.NEW, "start")

    def test_require_names_operation_and_state(self) -> None:
        machine = ProcessStateMachine()
        with pytest.raises(InvalidStateError) as exc_info:
            machine.require(ProcessState.RUNNING, "wait_for_init")

        assert "wait_for_init()" in exc_info.value.message
        assert "new" in exc_info.value.message
        assert exc_info.value.hint == "Call start() first"

    def test_require_hint_for_terminal_state(self) -> None:
        machine = ProcessStateMachine()
        machine.transition(ProcessState.FAILED)
        with pytest.raises(InvalidStateError) as exc_info:
            machine.require(ProcessState.NEW, "start")
        assert "new server instance" in exc_info.value.hint

    def test_only_one_concurrent_transition_wins(self) -> None:
        """Racing transitions out of RUNNING leave exactly one winner."""
        machine = ProcessStateMachine()
        machine.transition(ProcessState.RUNNING)
        results: list[bool] = []
        barrier = threading.Barrier(8)

        def race(target: ProcessState) -> None:
            barrier.wait()
            results.append(machine.try_transition(target))

        threads = [
            threading.Thread(
                target=race,
                args=(ProcessState.STOPPED if i % 2 else ProcessState.FAILED,),
            )
            for i in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 1
        assert machine.state.is_terminal
