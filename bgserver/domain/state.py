"""Process lifecycle states for a supervised server.

A supervised process moves through a small, monotonic state machine:

    NEW ──start()──> RUNNING ──stop()──> STOPPED
     │                  │
     └──spawn failure──>└──exit while required──> FAILED

STOPPED and FAILED are terminal.
"""

import threading
from enum import Enum

from bgserver.domain.exceptions import InvalidStateError


class ProcessState(Enum):
    """Lifecycle state of a supervised process."""

    NEW = "new"
    RUNNING = "running"
    STOPPED = "stopped"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """True for states no transition leaves."""
        return self in (ProcessState.STOPPED, ProcessState.FAILED)


_TRANSITIONS: dict[ProcessState, frozenset[ProcessState]] = {
    ProcessState.NEW: frozenset({ProcessState.RUNNING, ProcessState.FAILED}),
    ProcessState.RUNNING: frozenset({ProcessState.STOPPED, ProcessState.FAILED}),
    ProcessState.STOPPED: frozenset(),
    ProcessState.FAILED: frozenset(),
}


def can_transition(current: ProcessState, target: ProcessState) -> bool:
    """Check whether moving from current to target is allowed."""
    return target in _TRANSITIONS[current]


class ProcessStateMachine:
    """Thread-safe holder for a ProcessState.

    Shared by every BackgroundServer implementation so that the transition
    rules live in one place.
    """

    def __init__(self) -> None:
        self._state = ProcessState.NEW
        self._lock = threading.Lock()

    @property
    def state(self) -> ProcessState:
        """Current state."""
        with self._lock:
            return self._state

    def transition(self, target: ProcessState) -> ProcessState:
        """Move to target state.

        Args:
            target: State to move to

        Returns:
            The previous state

        Raises:
            InvalidStateError: If the transition is not allowed
        """
        with self._lock:
            previous = self._state
            if not can_transition(previous, target):
                raise InvalidStateError(
                    f"Cannot move from {previous.value} to {target.value}"
                )
            self._state = target
            return previous

    def try_transition(self, target: ProcessState) -> bool:
        """Move to target state if allowed, otherwise leave the state alone.

        Returns:
            True if the transition happened
        """
        with self._lock:
            if not can_transition(self._state, target):
                return False
            self._state = target
            return True

    def require(self, expected: ProcessState, operation: str) -> None:
        """Raise unless the current state is expected.

        Args:
            expected: Required state
            operation: Name of the operation, used in the error message

        Raises:
            InvalidStateError: If the current state differs
        """
        current = self.state
        if current is not expected:
            raise InvalidStateError(
                f"{operation}() requires state {expected.value}, "
                f"but server is {current.value}",
                hint=_hint_for(operation, current),
            )


def _hint_for(operation: str, current: ProcessState) -> str | None:
    if current is ProcessState.NEW:
        return "Call start() first"
    if current.is_terminal:
        return "Create a new server instance; stopped or failed servers cannot be reused"
    if operation == "start":
        return "The server is already running"
    return None
