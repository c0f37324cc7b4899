"""A single resolution session.

A :class:`CommandProcessor` owns one run of the session state machine
(``idle -> resolving(i) -> finalizing -> completed | failed``). Every step is
journaled before the state advances. A processor runs once and is then
discarded; a new selection always gets a new processor.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Protocol

from workflow_resolver.errors import ClipboardUnavailable, ResolutionError, WorkflowError
from workflow_resolver.session.events import (
    ArgumentPrompted,
    ArgumentResolved,
    CommandFinalized,
    EnumCommandExecuted,
    ResolutionFailed,
    SessionStarted,
)
from workflow_resolver.session.journal import Journal
from workflow_resolver.session.resolver import (
    ArgumentResolver,
    CommandOutput,
    PromptSpec,
    ResolvedArgument,
)
from workflow_resolver.session.state_machine import (
    INITIAL_SNAPSHOT,
    IllegalTransitionError,
    SessionPhase,
    SessionSnapshot,
    transition,
)
from workflow_resolver.workflow.models import ArgumentSpec, WorkflowDefinition
from workflow_resolver.workflow.template import render_command

logger = logging.getLogger(__name__)


class ClipboardSink(Protocol):
    """Receives the finalized command. Raises ``ClipboardUnavailable`` on failure."""

    def copy(self, text: str) -> None: ...


def new_session_id() -> str:
    return uuid.uuid4().hex


@dataclass
class SessionOutcome:
    """Result of one session, returned synchronously to the caller."""

    session_id: str
    workflow_name: str
    phase: SessionPhase
    resolved: list[ResolvedArgument] = field(default_factory=list)
    command: str | None = None
    error: WorkflowError | None = None
    clipboard_error: ClipboardUnavailable | None = None
    parent_session_id: str | None = None
    chain_depth: int = 0
    children: list[SessionOutcome] = field(default_factory=list)
    chain_error: WorkflowError | None = None

    @property
    def succeeded(self) -> bool:
        return self.phase is SessionPhase.COMPLETED

    @property
    def resolved_values(self) -> dict[str, str]:
        return {r.name: r.value for r in self.resolved}


class CommandProcessor:
    """Drives one workflow resolution and journals each step.

    Args:
        definition: Shared, read-only workflow definition.
        resolver: A resolver dedicated to this session.
        journal: Where events go; may be shared with other sessions.
        clipboard: Receives the finalized command exactly once on success.
        session_id: Generated when omitted.
        parent_session_id: Set for sessions spawned by chaining.
        chain_depth: 0 for a user selection, parent depth + 1 for a chained one.
    """

    def __init__(
        self,
        *,
        definition: WorkflowDefinition,
        resolver: ArgumentResolver,
        journal: Journal,
        clipboard: ClipboardSink,
        session_id: str | None = None,
        parent_session_id: str | None = None,
        chain_depth: int = 0,
    ) -> None:
        self.definition = definition
        self.session_id = session_id or new_session_id()
        self.parent_session_id = parent_session_id
        self.chain_depth = chain_depth

        self._resolver = resolver
        self._journal = journal
        self._clipboard = clipboard

        self._snapshot: SessionSnapshot = INITIAL_SNAPSHOT
        self._sequence = 0
        self._resolved: list[ResolvedArgument] = []
        self._command: str | None = None

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    @property
    def resolved(self) -> list[ResolvedArgument]:
        return list(self._resolved)

    # ------------------------------------------------------------------
    # Journal plumbing
    # ------------------------------------------------------------------

    def _next_sequence(self) -> int:
        seq = self._sequence
        self._sequence += 1
        return seq

    def _advance(self, to: SessionPhase, index: int | None = None) -> None:
        self._snapshot = transition(current=self._snapshot, to=to, index=index)
        logger.debug(
            "Session state changed",
            extra={"session_id": self.session_id, "state": str(self._snapshot)},
        )

    # ResolutionListener
    def argument_prompted(self, spec: ArgumentSpec, prompt: PromptSpec, *, index: int, attempt: int) -> None:
        self._journal.append(
            ArgumentPrompted(
                session_id=self.session_id,
                sequence=self._next_sequence(),
                argument_name=spec.name,
                index=index,
                attempt=attempt,
                default_value=prompt.default,
                options=prompt.options,
            )
        )

    # ResolutionListener
    def enum_command_executed(
        self, spec: ArgumentSpec, *, command: str, output: CommandOutput, options: tuple[str, ...]
    ) -> None:
        self._journal.append(
            EnumCommandExecuted(
                session_id=self.session_id,
                sequence=self._next_sequence(),
                argument_name=spec.name,
                command=command,
                exit_status=output.exit_status,
                options=options,
                stderr=output.stderr,
            )
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> SessionOutcome:
        """Resolve every argument, render the command and deliver it.

        Resolution errors end the session in ``failed``; they are journaled and
        returned on the outcome, not raised.

        Raises:
            IllegalTransitionError: the processor has already run.
        """

        if self._snapshot.phase is not SessionPhase.IDLE:
            raise IllegalTransitionError(f"Session {self.session_id} already ran ({self._snapshot})")

        self._start()
        try:
            self._resolve_arguments()
            command = self._finalize()
        except ResolutionError as e:
            self._fail(e)
            return self._outcome(error=e)

        clipboard_error = self._deliver(command)
        return self._outcome(command=command, clipboard_error=clipboard_error)

    def fail_unexpectedly(self, error: Exception) -> SessionOutcome:
        """Record an error that escaped :meth:`run` and mark the session failed."""

        wrapped = error if isinstance(error, WorkflowError) else WorkflowError(str(error))
        if not self._snapshot.is_terminal:
            if self._snapshot.phase is SessionPhase.IDLE:
                self._start()
            self._fail(error)
        # A session that already completed keeps its command.
        return self._outcome(command=self._command, error=wrapped)

    def _start(self) -> None:
        self._journal.append(
            SessionStarted(
                session_id=self.session_id,
                sequence=self._next_sequence(),
                workflow_name=self.definition.name,
                command_template=self.definition.command,
                argument_names=tuple(self.definition.argument_names),
                parent_session_id=self.parent_session_id,
                chain_depth=self.chain_depth,
            )
        )
        logger.info(
            "Session started",
            extra={
                "session_id": self.session_id,
                "workflow": self.definition.name,
                "parent_session_id": self.parent_session_id,
            },
        )
        if self.definition.arguments:
            self._advance(SessionPhase.RESOLVING, index=0)
        else:
            self._advance(SessionPhase.FINALIZING)

    def _resolve_arguments(self) -> None:
        specs = self.definition.arguments
        values: dict[str, str] = {}
        for index, spec in enumerate(specs):
            result = self._resolver.resolve_argument(
                spec, index=index, resolved=values, listener=self
            )
            self._journal.append(
                ArgumentResolved(
                    session_id=self.session_id,
                    sequence=self._next_sequence(),
                    argument_name=result.name,
                    index=index,
                    value=result.value,
                    used_default=result.used_default,
                )
            )
            self._resolved.append(result)
            values[result.name] = result.value

            if index + 1 < len(specs):
                self._advance(SessionPhase.RESOLVING, index=index + 1)
            else:
                self._advance(SessionPhase.FINALIZING)

    def _finalize(self) -> str:
        command = render_command(self.definition.command, {r.name: r.value for r in self._resolved})
        self._journal.append(
            CommandFinalized(
                session_id=self.session_id,
                sequence=self._next_sequence(),
                command=command,
            )
        )
        self._command = command
        self._advance(SessionPhase.COMPLETED)
        logger.info(
            "Command finalized",
            extra={"session_id": self.session_id, "workflow": self.definition.name},
        )
        return command

    def _fail(self, error: Exception) -> None:
        failed_in = str(self._snapshot)
        argument = getattr(error, "argument", None)
        self._journal.append(
            ResolutionFailed(
                session_id=self.session_id,
                sequence=self._next_sequence(),
                error_kind=type(error).__name__,
                message=str(error),
                argument_name=argument,
                phase=failed_in,
            )
        )
        self._advance(SessionPhase.FAILED)
        logger.warning(
            "Session failed",
            extra={
                "session_id": self.session_id,
                "workflow": self.definition.name,
                "state": failed_in,
                "error": type(error).__name__,
            },
        )

    def _deliver(self, command: str) -> ClipboardUnavailable | None:
        try:
            self._clipboard.copy(command)
        except ClipboardUnavailable as e:
            error = e
        except Exception as e:
            error = ClipboardUnavailable(reason=f"{type(e).__name__}: {e}")
        else:
            return None
        logger.warning(
            "Clipboard unavailable; command must be shown instead",
            extra={"session_id": self.session_id, "reason": error.reason},
        )
        return error

    def _outcome(
        self,
        *,
        command: str | None = None,
        error: WorkflowError | None = None,
        clipboard_error: ClipboardUnavailable | None = None,
    ) -> SessionOutcome:
        return SessionOutcome(
            session_id=self.session_id,
            workflow_name=self.definition.name,
            phase=self._snapshot.phase,
            resolved=list(self._resolved),
            command=command,
            error=error,
            clipboard_error=clipboard_error,
            parent_session_id=self.parent_session_id,
            chain_depth=self.chain_depth,
        )
