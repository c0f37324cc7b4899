from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SessionPhase(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    FAILED = "failed"


ALLOWED_TRANSITIONS: dict[SessionPhase, set[SessionPhase]] = {
    SessionPhase.IDLE: {SessionPhase.RESOLVING, SessionPhase.FINALIZING, SessionPhase.FAILED},
    SessionPhase.RESOLVING: {
        SessionPhase.RESOLVING,
        SessionPhase.FINALIZING,
        SessionPhase.FAILED,
    },
    SessionPhase.FINALIZING: {SessionPhase.COMPLETED, SessionPhase.FAILED},
    SessionPhase.COMPLETED: set(),
    SessionPhase.FAILED: set(),
}

TERMINAL_PHASES = frozenset({SessionPhase.COMPLETED, SessionPhase.FAILED})


class IllegalTransitionError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Where a session is: its phase plus, while resolving, the argument index."""

    phase: SessionPhase
    index: int | None = None

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    def __str__(self) -> str:
        if self.phase is SessionPhase.RESOLVING:
            return f"{self.phase.value}({self.index})"
        return self.phase.value


INITIAL_SNAPSHOT = SessionSnapshot(phase=SessionPhase.IDLE)


def transition(
    *, current: SessionSnapshot, to: SessionPhase, index: int | None = None
) -> SessionSnapshot:
    allowed = ALLOWED_TRANSITIONS.get(current.phase, set())
    if to not in allowed:
        raise IllegalTransitionError(f"Illegal transition: {current} -> {to.value}")

    if to is SessionPhase.RESOLVING:
        expected = 0 if current.phase is SessionPhase.IDLE else (current.index or 0) + 1
        if index != expected:
            raise IllegalTransitionError(
                f"Illegal transition: {current} -> {to.value}({index}), expected index {expected}"
            )
        return SessionSnapshot(phase=to, index=index)

    return SessionSnapshot(phase=to)
