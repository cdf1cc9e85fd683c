"""Sync run lifecycle as an explicit state machine."""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum

from discord_vault_sync.logging import get_logger

log = get_logger("discord_vault_sync.sync.state")


class RunState(StrEnum):
    """Lifecycle states of a sync run."""

    IDLE = "idle"
    RUNNING = "running"  # Lock held, settings validated
    DRAINING = "draining"  # Fetching and processing pages
    COMPLETING = "completing"  # Posting the summary
    FAILED = "failed"  # Terminal for the run, not for the app


ALLOWED_TRANSITIONS: dict[RunState, frozenset[RunState]] = {
    RunState.IDLE: frozenset({RunState.RUNNING}),
    RunState.RUNNING: frozenset({RunState.DRAINING, RunState.FAILED}),
    RunState.DRAINING: frozenset({RunState.COMPLETING, RunState.FAILED}),
    RunState.COMPLETING: frozenset({RunState.IDLE, RunState.FAILED}),
    RunState.FAILED: frozenset({RunState.IDLE}),
}


class RunStateMachine:
    """Tracks the current run state and rejects illegal transitions."""

    def __init__(self, on_change: Callable[[RunState], None] | None = None) -> None:
        self._state = RunState.IDLE
        self._on_change = on_change

    @property
    def state(self) -> RunState:
        return self._state

    def can_transition(self, target: RunState) -> bool:
        return target in ALLOWED_TRANSITIONS[self._state]

    def transition(self, target: RunState) -> None:
        """Move to ``target``.

        Raises:
            RuntimeError: ``target`` is not reachable from the current state.
        """
        if not self.can_transition(target):
            raise RuntimeError(f"Illegal sync state transition: {self._state} -> {target}")
        log.debug("sync_state_changed", previous=str(self._state), state=str(target))
        self._state = target
        if self._on_change is not None:
            self._on_change(target)
