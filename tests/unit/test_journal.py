"""Unit tests for the event journal backends and replay."""

from __future__ import annotations

from pathlib import Path

import pytest

from workflow_resolver.config import WorkflowSettings
from workflow_resolver.errors import JournalCorrupted
from workflow_resolver.session.events import (
    ArgumentResolved,
    CommandFinalized,
    ResolutionFailed,
    SessionStarted,
    event_from_json,
)
from workflow_resolver.session.journal import InMemoryJournal, Journal, JsonlJournal, create_journal, replay
from workflow_resolver.session.state_machine import SessionPhase


def _completed_session(session_id: str = "s1") -> list:
    return [
        SessionStarted(
            session_id=session_id,
            sequence=0,
            workflow_name="Echo",
            command_template="echo {{msg}}",
            argument_names=("msg",),
        ),
        ArgumentResolved(session_id=session_id, sequence=1, argument_name="msg", index=0, value="hi"),
        CommandFinalized(session_id=session_id, sequence=2, command="echo hi"),
    ]


@pytest.fixture(params=["memory", "jsonl"])
def any_journal(request: pytest.FixtureRequest, tmp_path: Path) -> Journal:
    if request.param == "memory":
        return InMemoryJournal()
    return JsonlJournal(tmp_path / "nested" / "journal.jsonl")


def test_read_all_returns_session_events_in_append_order(any_journal: Journal) -> None:
    a = _completed_session("a")
    b = _completed_session("b")
    for event_a, event_b in zip(a, b, strict=True):
        any_journal.append(event_a)
        any_journal.append(event_b)

    assert any_journal.read_all("a") == a
    assert any_journal.read_all("b") == b
    assert any_journal.session_ids() == ["a", "b"]
    assert any_journal.read_all("unknown") == []


def test_jsonl_journal_survives_reopen_and_skips_torn_line(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "journal.jsonl"
    for event in _completed_session():
        JsonlJournal(path).append(event)
    with path.open("a", encoding="utf-8") as f:
        f.write('{"kind": "CommandFin')

    events = JsonlJournal(path).read_all("s1")

    assert [e.kind for e in events] == ["SessionStarted", "ArgumentResolved", "CommandFinalized"]
    assert JsonlJournal(path).session_ids() == ["s1"]
    warning = next(r for r in caplog.records if r.getMessage() == "Skipping unreadable journal line")
    assert warning.line == 4


def test_events_round_trip_through_json() -> None:
    event = ResolutionFailed(
        session_id="s", sequence=3, error_kind="EnumCommandFailed", message="boom", argument_name="t", phase="resolving(1)"
    )
    assert event_from_json(event.model_dump_json()) == event


def test_create_journal_uses_configured_backend(clean_env: Path) -> None:
    assert isinstance(create_journal(WorkflowSettings(journal_backend="memory")), InMemoryJournal)

    journal = create_journal(WorkflowSettings(journal_path=clean_env / "j.jsonl"))
    assert isinstance(journal, JsonlJournal)
    assert journal.path == clean_env / "j.jsonl"


def test_replay_completed_session() -> None:
    result = replay(_completed_session())

    assert result.phase is SessionPhase.COMPLETED
    assert result.command == "echo hi"
    assert result.resolved == {"msg": "hi"}
    assert result.to_json()["workflow"] == "Echo"


def test_replay_failed_session() -> None:
    events = _completed_session()[:2] + [
        ResolutionFailed(session_id="s1", sequence=2, error_kind="UnboundPlaceholder", message="x", phase="finalizing")
    ]

    result = replay(events)

    assert result.phase is SessionPhase.FAILED
    assert result.command is None
    assert result.failure is not None
    assert result.failure.error_kind == "UnboundPlaceholder"


def test_replay_interrupted_session_reports_progress() -> None:
    assert replay(_completed_session()[:1]).phase is SessionPhase.RESOLVING
    assert replay(_completed_session()[:2]).phase is SessionPhase.FINALIZING


def test_replay_rejects_gaps_and_tampering() -> None:
    events = _completed_session()

    with pytest.raises(JournalCorrupted, match="sequence"):
        replay([events[0], events[2]])
    with pytest.raises(JournalCorrupted, match="differs"):
        replay(events[:2] + [CommandFinalized(session_id="s1", sequence=2, command="rm -rf /")])
    with pytest.raises(JournalCorrupted, match="SessionStarted"):
        replay(events[1:])
    with pytest.raises(JournalCorrupted):
        replay([])
