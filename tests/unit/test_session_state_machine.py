"""Unit tests for the session state machine.

Illegal transitions must fail loudly; argument indices only move forward one
step at a time.
"""

from __future__ import annotations

import pytest

from workflow_resolver.session.state_machine import (
    INITIAL_SNAPSHOT,
    IllegalTransitionError,
    SessionPhase,
    SessionSnapshot,
    transition,
)


def test_happy_path_walks_every_argument() -> None:
    snap = transition(current=INITIAL_SNAPSHOT, to=SessionPhase.RESOLVING, index=0)
    snap = transition(current=snap, to=SessionPhase.RESOLVING, index=1)
    assert str(snap) == "resolving(1)"

    snap = transition(current=snap, to=SessionPhase.FINALIZING)
    snap = transition(current=snap, to=SessionPhase.COMPLETED)
    assert snap.is_terminal


def test_zero_argument_workflow_goes_straight_to_finalizing() -> None:
    snap = transition(current=INITIAL_SNAPSHOT, to=SessionPhase.FINALIZING)
    assert snap.phase is SessionPhase.FINALIZING


def test_resolving_index_must_advance_by_one() -> None:
    snap = SessionSnapshot(phase=SessionPhase.RESOLVING, index=1)
    with pytest.raises(IllegalTransitionError):
        transition(current=snap, to=SessionPhase.RESOLVING, index=3)
    with pytest.raises(IllegalTransitionError):
        transition(current=INITIAL_SNAPSHOT, to=SessionPhase.RESOLVING, index=1)


@pytest.mark.parametrize("terminal", [SessionPhase.COMPLETED, SessionPhase.FAILED])
@pytest.mark.parametrize("to", list(SessionPhase))
def test_terminal_phases_have_no_exits(terminal: SessionPhase, to: SessionPhase) -> None:
    with pytest.raises(IllegalTransitionError):
        transition(current=SessionSnapshot(phase=terminal), to=to, index=0)


def test_cannot_complete_without_finalizing() -> None:
    snap = SessionSnapshot(phase=SessionPhase.RESOLVING, index=0)
    with pytest.raises(IllegalTransitionError):
        transition(current=snap, to=SessionPhase.COMPLETED)


def test_failure_is_reachable_from_every_live_phase() -> None:
    for snap in (
        INITIAL_SNAPSHOT,
        SessionSnapshot(phase=SessionPhase.RESOLVING, index=2),
        SessionSnapshot(phase=SessionPhase.FINALIZING),
    ):
        assert transition(current=snap, to=SessionPhase.FAILED).phase is SessionPhase.FAILED
