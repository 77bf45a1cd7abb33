"""A minimal state machine driving enter/run/exit hooks."""

from __future__ import annotations

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class State:
    """A state with enter, exit and run hooks; subclasses override them.

    The default hooks track whether the state is active and how many
    times it has run since it was last entered.
    """

    def __init__(self, name: Optional[str] = None) -> None:
        self.name = name
        self.machine: Optional[StateMachine] = None
        self.active = False
        self.run_count = 0

    def enter(self) -> None:
        """Called when the machine switches into this state."""
        self.active = True
        self.run_count = 0

    def exit(self) -> None:
        """Called when the machine leaves this state."""
        self.active = False

    def run(self) -> None:
        """Called on every machine step while this state is current."""
        self.run_count += 1

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class StateMachine:
    """Runs the current state and handles transitions between states."""

    def __init__(
        self,
        state: Optional[State] = None,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        self._idle = State()
        self.on_change = on_change
        if state is None:
            self._previous_state: Optional[State] = self._idle
            self._state: State = self._idle
        else:
            self._previous_state = None
            self._state = state

    @property
    def current_state(self) -> State:
        """The state the machine is in or about to enter."""
        return self._state

    @property
    def idle_state(self) -> State:
        """The machine's built-in idle state."""
        return self._idle

    def init(self, state: State) -> None:
        """Make ``state`` current immediately and run its enter and run hooks."""
        self._state = state
        self._previous_state = state
        state.enter()
        state.run()

    def set_state(self, state: State) -> None:
        """Request a transition; it takes effect on the next ``run``."""
        self._state = state
        logger.info("Setting state: %s", state.name)

    def set_idle_state(self) -> None:
        """Request a transition to the idle state."""
        logger.info("Setting idle state")
        self._state = self._idle

    def run(self) -> bool:
        """Step the machine; return True when a state was entered."""
        if self._previous_state is None:
            self._previous_state = self._state
            self._state.enter()
            self._state.run()
            return True

        if self._state is not self._previous_state:
            self._previous_state.exit()
            self._previous_state = self._state
            self._state.enter()
            self._state.run()
            return True

        self._state.run()
        return False