"""State machine for health listener lifecycle: STOPPED -> STARTING -> ACCEPTING -> STOPPING -> STOPPED.

Transition implementation (listener.py):
- STOPPED -> STARTING: start() begins binding
- STARTING -> ACCEPTING: bind/listen succeeded, accept thread started
- STARTING -> STOPPED: bind failed (port in use, permission denied); socket released
- ACCEPTING -> STOPPING: stop(), or an exception inside the accept loop
- STOPPING -> STOPPED: socket closed, port released
"""

import enum
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class ListenerState(str, enum.Enum):
    """Health listener lifecycle states."""

    STOPPED = "stopped"
    STARTING = "starting"
    ACCEPTING = "accepting"
    STOPPING = "stopping"


# Valid transitions: from_state -> set of allowed to_states
_TRANSITIONS: dict[ListenerState, set[ListenerState]] = {
    ListenerState.STOPPED: {ListenerState.STARTING},
    ListenerState.STARTING: {ListenerState.ACCEPTING, ListenerState.STOPPED},
    ListenerState.ACCEPTING: {ListenerState.STOPPING},
    ListenerState.STOPPING: {ListenerState.STOPPED},
}


class ListenerStateMachine:
    """Tracks listener lifecycle state and validates transitions."""

    def __init__(
        self,
        on_transition: Optional[Callable[[ListenerState, ListenerState], None]] = None,
    ):
        self._current = ListenerState.STOPPED
        self._on_transition = on_transition

    @property
    def current(self) -> ListenerState:
        return self._current

    def can_transition_to(self, to_state: ListenerState) -> bool:
        """Check if transition from current state to to_state is valid."""
        allowed = _TRANSITIONS.get(self._current, set())
        return to_state in allowed

    def transition(self, to_state: ListenerState) -> bool:
        """
        Transition to new state if valid. Returns True on success, False otherwise.
        Calls on_transition(from, to) callback if provided.
        """
        if not self.can_transition_to(to_state):
            logger.warning(
                "Invalid transition: %s -> %s (allowed: %s)",
                self._current.value,
                to_state.value,
                [s.value for s in _TRANSITIONS.get(self._current, set())],
            )
            return False
        from_state = self._current
        self._current = to_state
        if self._on_transition:
            try:
                self._on_transition(from_state, to_state)
            except Exception as e:
                logger.debug("on_transition callback error: %s", e)
        return True

    def is_accepting(self) -> bool:
        """True while the accept loop should keep running."""
        return self._current == ListenerState.ACCEPTING

    def is_stopped(self) -> bool:
        return self._current == ListenerState.STOPPED
