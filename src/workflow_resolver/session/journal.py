"""Append-only event journal with pluggable storage.

Backends implement two operations, ``append`` and ``read_all``; nothing is
ever updated or deleted. Sessions only write their own entries, so a single
lock per backend is enough to keep each session's sub-sequence ordered when
sessions run concurrently.
"""

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import ValidationError

from workflow_resolver.config import WorkflowSettings
from workflow_resolver.errors import JournalCorrupted, UnboundPlaceholder
from workflow_resolver.session.events import (
    ArgumentResolved,
    CommandFinalized,
    Event,
    ResolutionFailed,
    SessionStarted,
    event_from_json,
)
from workflow_resolver.session.state_machine import SessionPhase
from workflow_resolver.workflow.template import render_command

logger = logging.getLogger(__name__)


class Journal(ABC):
    """Storage contract for session events."""

    @abstractmethod
    def append(self, event: Event) -> None:
        """Durably (as far as the backend allows) record one event."""

    @abstractmethod
    def read_all(self, session_id: str) -> list[Event]:
        """Return the session's events in append order (empty if unknown)."""

    @abstractmethod
    def session_ids(self) -> list[str]:
        """Sessions present in the journal, in order of their first event."""


class InMemoryJournal(Journal):
    """Volatile reference backend."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: dict[str, list[Event]] = {}

    def append(self, event: Event) -> None:
        with self._lock:
            self._events.setdefault(event.session_id, []).append(event)

    def read_all(self, session_id: str) -> list[Event]:
        with self._lock:
            return list(self._events.get(session_id, []))

    def session_ids(self) -> list[str]:
        with self._lock:
            return list(self._events)


class JsonlJournal(Journal):
    """Durable backend: one JSON event per line, appended to a single file."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def append(self, event: Event) -> None:
        line = event.model_dump_json() + "\n"
        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
                f.flush()

    def _iter_unlocked(self) -> list[Event]:
        if not self._path.exists():
            return []
        events: list[Event] = []
        with self._path.open(encoding="utf-8") as f:
            for line_number, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    events.append(event_from_json(line))
                except ValidationError:
                    # A torn trailing write is the only expected way to get here.
                    logger.warning(
                        "Skipping unreadable journal line",
                        extra={"path": str(self._path), "line": line_number},
                    )
        return events

    def read_all(self, session_id: str) -> list[Event]:
        with self._lock:
            return [e for e in self._iter_unlocked() if e.session_id == session_id]

    def session_ids(self) -> list[str]:
        with self._lock:
            ids: dict[str, None] = {}
            for event in self._iter_unlocked():
                ids.setdefault(event.session_id, None)
            return list(ids)


def create_journal(settings: WorkflowSettings) -> Journal:
    logger.debug(
        "Creating journal",
        extra={"backend": settings.journal_backend, "path": str(settings.journal_path)},
    )
    if settings.journal_backend == "memory":
        return InMemoryJournal()
    if settings.journal_backend == "jsonl":
        return JsonlJournal(settings.journal_path)
    raise ValueError(f"Unsupported journal backend: {settings.journal_backend}")


# ---------------------------------------------------------------------------
# Replay
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ReplayResult:
    """What a session's events say happened, reconstructed without prompting."""

    session_id: str
    workflow_name: str
    phase: SessionPhase
    resolved: dict[str, str] = field(default_factory=dict)
    command: str | None = None
    failure: ResolutionFailed | None = None
    parent_session_id: str | None = None

    def to_json(self) -> dict[str, object]:
        out: dict[str, object] = {
            "session_id": self.session_id,
            "workflow": self.workflow_name,
            "phase": self.phase.value,
            "resolved": dict(self.resolved),
        }
        if self.command is not None:
            out["command"] = self.command
        if self.failure is not None:
            out["failure"] = {
                "error_kind": self.failure.error_kind,
                "message": self.failure.message,
                "argument": self.failure.argument_name,
                "phase": self.failure.phase,
            }
        if self.parent_session_id is not None:
            out["parent_session_id"] = self.parent_session_id
        return out

    def __str__(self) -> str:
        return json.dumps(self.to_json(), ensure_ascii=False)


def replay(events: Sequence[Event]) -> ReplayResult:
    """Rebuild a session's outcome from its journaled events.

    The command is re-rendered from the template in ``SessionStarted`` and the
    ``ArgumentResolved`` values; when a ``CommandFinalized`` event exists the
    two must agree.

    Raises:
        JournalCorrupted: events are empty, mix sessions, are out of order, or
            contradict each other.
    """

    if not events:
        raise JournalCorrupted(session_id="", message="no events")

    first = events[0]
    session_id = first.session_id
    if not isinstance(first, SessionStarted):
        raise JournalCorrupted(session_id=session_id, message="first event is not SessionStarted")

    for expected, event in enumerate(events):
        if event.session_id != session_id:
            raise JournalCorrupted(
                session_id=session_id, message=f"foreign event from session {event.session_id}"
            )
        if event.sequence != expected:
            raise JournalCorrupted(
                session_id=session_id,
                message=f"sequence {event.sequence} where {expected} was expected",
            )

    resolved: dict[str, str] = {}
    finalized: CommandFinalized | None = None
    failure: ResolutionFailed | None = None
    for event in events[1:]:
        if isinstance(event, ArgumentResolved):
            resolved[event.argument_name] = event.value
        elif isinstance(event, CommandFinalized):
            finalized = event
        elif isinstance(event, ResolutionFailed):
            failure = event

    def _result(
        phase: SessionPhase,
        command: str | None = None,
        failure_event: ResolutionFailed | None = None,
    ) -> ReplayResult:
        return ReplayResult(
            session_id=session_id,
            workflow_name=first.workflow_name,
            phase=phase,
            resolved=resolved,
            command=command,
            failure=failure_event,
            parent_session_id=first.parent_session_id,
        )

    if failure is not None:
        if finalized is not None:
            raise JournalCorrupted(session_id=session_id, message="both finalized and failed")
        return _result(SessionPhase.FAILED, failure_event=failure)

    if finalized is None:
        # Still running, or the process died mid-resolution.
        phase = (
            SessionPhase.RESOLVING
            if len(resolved) < len(first.argument_names)
            else SessionPhase.FINALIZING
        )
        return _result(phase)

    try:
        command = render_command(first.command_template, resolved)
    except UnboundPlaceholder as e:
        raise JournalCorrupted(
            session_id=session_id, message=f"finalized but {e} during replay"
        ) from e
    if command != finalized.command:
        raise JournalCorrupted(
            session_id=session_id, message="replayed command differs from the finalized command"
        )
    return _result(SessionPhase.COMPLETED, command=command)
