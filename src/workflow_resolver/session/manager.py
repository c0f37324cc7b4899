"""Supervisor for resolution sessions.

The manager creates one fresh :class:`CommandProcessor` per workflow
selection and owns every session it creates, including sessions spawned by
chaining. A session that fails, or crashes, is contained: its siblings, their
journal entries and the manager itself are unaffected.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

from workflow_resolver.config import WorkflowSettings
from workflow_resolver.errors import ChainCycle, ChainDepthExceeded, ChainError, UnknownSession, WorkflowError
from workflow_resolver.session.journal import Journal
from workflow_resolver.session.processor import (
    ClipboardSink,
    CommandProcessor,
    SessionOutcome,
    new_session_id,
)
from workflow_resolver.session.resolver import ArgumentResolver, Prompter, SubcommandExecutor
from workflow_resolver.session.state_machine import SessionPhase
from workflow_resolver.workflow.models import WorkflowDefinition

logger = logging.getLogger(__name__)

WorkflowLookup = Callable[[str], WorkflowDefinition | None]


@dataclass(frozen=True, slots=True)
class SessionStats:
    active_sessions: int
    total_sessions_created: int
    total_sessions_completed: int
    total_sessions_failed: int

    @property
    def success_rate(self) -> float:
        finished = self.total_sessions_completed + self.total_sessions_failed
        if finished == 0:
            return 100.0
        return self.total_sessions_completed / finished * 100.0


def parse_chain_target(command: str, prefix: str) -> str | None:
    """Return the workflow named by ``<prefix> <name>``, or None."""

    words = command.split()
    prefix_words = prefix.split()
    if len(words) != len(prefix_words) + 1 or words[: len(prefix_words)] != prefix_words:
        return None
    return words[-1]


class WorkflowManager:
    """Spawns and supervises resolution sessions.

    Args:
        journal: Shared by every session; each session writes only its own entries.
        prompter: Default prompter for sessions that don't bring their own.
        executor: Runs dynamic enum commands.
        clipboard: Receives finalized commands.
        lookup: Finds a workflow by name for chaining; chaining is off without it.
        enum_command_timeout: Passed to each session's resolver.
        max_chain_depth: Deepest chained session allowed (a user selection is depth 0).
        chain_prefix: Finalized commands ``<chain_prefix> <name>`` start workflow ``name``.
    """

    def __init__(
        self,
        *,
        journal: Journal,
        prompter: Prompter,
        executor: SubcommandExecutor,
        clipboard: ClipboardSink,
        lookup: WorkflowLookup | None = None,
        enum_command_timeout: float | None = None,
        max_chain_depth: int = 5,
        chain_prefix: str = "workflow run",
    ) -> None:
        self._journal = journal
        self._prompter = prompter
        self._executor = executor
        self._clipboard = clipboard
        self._lookup = lookup
        self._enum_command_timeout = enum_command_timeout
        self._max_chain_depth = max_chain_depth
        self._chain_prefix = chain_prefix

        self._lock = threading.Lock()
        self._active: dict[str, CommandProcessor] = {}
        self._threads: dict[str, threading.Thread] = {}
        self._outcomes: dict[str, SessionOutcome] = {}
        self._created = 0
        self._completed = 0
        self._failed = 0

    @classmethod
    def from_settings(
        cls,
        settings: WorkflowSettings,
        *,
        journal: Journal,
        prompter: Prompter,
        executor: SubcommandExecutor,
        clipboard: ClipboardSink,
        lookup: WorkflowLookup | None = None,
    ) -> WorkflowManager:
        return cls(
            journal=journal,
            prompter=prompter,
            executor=executor,
            clipboard=clipboard,
            lookup=lookup,
            enum_command_timeout=settings.enum_command_timeout_seconds,
            max_chain_depth=settings.max_chain_depth,
            chain_prefix=settings.chain_prefix,
        )

    @property
    def journal(self) -> Journal:
        return self._journal

    # ------------------------------------------------------------------
    # Spawning
    # ------------------------------------------------------------------

    def run(self, definition: WorkflowDefinition, *, prompter: Prompter | None = None) -> SessionOutcome:
        """Resolve ``definition`` in a new session on the calling thread."""

        return self._run_session(
            definition,
            session_id=new_session_id(),
            prompter=prompter or self._prompter,
            parent=None,
            path=(),
        )

    def start(self, definition: WorkflowDefinition, *, prompter: Prompter | None = None) -> str:
        """Resolve ``definition`` in a new session on its own thread.

        Returns the session id; use :meth:`wait` for the outcome.
        """

        session_id = new_session_id()
        thread = threading.Thread(
            target=self._run_session,
            name=f"workflow-session-{session_id}",
            daemon=True,
            kwargs={
                "definition": definition,
                "session_id": session_id,
                "prompter": prompter or self._prompter,
                "parent": None,
                "path": (),
            },
        )
        with self._lock:
            self._threads[session_id] = thread
        thread.start()
        return session_id

    def wait(self, session_id: str, timeout: float | None = None) -> SessionOutcome:
        with self._lock:
            thread = self._threads.get(session_id)
        if thread is not None:
            thread.join(timeout)
        with self._lock:
            outcome = self._outcomes.get(session_id)
        if outcome is None:
            raise UnknownSession(session_id=session_id)
        return outcome

    def _run_session(
        self,
        definition: WorkflowDefinition,
        *,
        session_id: str,
        prompter: Prompter,
        parent: SessionOutcome | None,
        path: tuple[str, ...],
    ) -> SessionOutcome:
        resolver = ArgumentResolver(
            prompter=prompter,
            executor=self._executor,
            enum_command_timeout=self._enum_command_timeout,
        )
        processor = CommandProcessor(
            definition=definition,
            resolver=resolver,
            journal=self._journal,
            clipboard=self._clipboard,
            session_id=session_id,
            parent_session_id=parent.session_id if parent else None,
            chain_depth=parent.chain_depth + 1 if parent else 0,
        )
        with self._lock:
            self._active[session_id] = processor
            self._created += 1
        logger.debug(
            "Session spawned",
            extra={"session_id": session_id, "workflow": definition.name, "depth": processor.chain_depth},
        )

        try:
            outcome = processor.run()
        except Exception as e:
            logger.exception(
                "Session crashed", extra={"session_id": session_id, "workflow": definition.name}
            )
            outcome = self._contain(processor, e)
        finally:
            with self._lock:
                self._active.pop(session_id, None)

        with self._lock:
            if outcome.phase is SessionPhase.COMPLETED:
                self._completed += 1
            else:
                self._failed += 1
            self._outcomes[session_id] = outcome

        if outcome.succeeded and outcome.command is not None:
            self._chain(outcome, prompter=prompter, path=(*path, definition.name))
        return outcome

    def _contain(self, processor: CommandProcessor, error: Exception) -> SessionOutcome:
        try:
            return processor.fail_unexpectedly(error)
        except Exception:
            # Typically the journal itself is failing; report from memory.
            logger.exception(
                "Could not record session failure", extra={"session_id": processor.session_id}
            )
            wrapped = error if isinstance(error, WorkflowError) else WorkflowError(str(error))
            return SessionOutcome(
                session_id=processor.session_id,
                workflow_name=processor.definition.name,
                phase=SessionPhase.FAILED,
                resolved=processor.resolved,
                error=wrapped,
                parent_session_id=processor.parent_session_id,
                chain_depth=processor.chain_depth,
            )

    # ------------------------------------------------------------------
    # Chaining
    # ------------------------------------------------------------------

    def _chain(self, parent: SessionOutcome, *, prompter: Prompter, path: tuple[str, ...]) -> None:
        if self._lookup is None or parent.command is None:
            return
        target = parse_chain_target(parent.command, self._chain_prefix)
        if target is None:
            return
        definition = self._lookup(target)
        if definition is None:
            logger.info(
                "Finalized command names an unknown workflow; not chaining",
                extra={"session_id": parent.session_id, "target": target},
            )
            return

        try:
            if definition.name in path:
                raise ChainCycle(workflow=definition.name, path=path)
            if parent.chain_depth + 1 > self._max_chain_depth:
                raise ChainDepthExceeded(workflow=definition.name, max_depth=self._max_chain_depth)
        except ChainError as e:
            logger.warning(str(e), extra={"session_id": parent.session_id})
            parent.chain_error = e
            return

        child = self._run_session(
            definition,
            session_id=new_session_id(),
            prompter=prompter,
            parent=parent,
            path=path,
        )
        parent.children.append(child)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def active_session_ids(self) -> list[str]:
        with self._lock:
            return list(self._active)

    def outcome(self, session_id: str) -> SessionOutcome:
        with self._lock:
            found = self._outcomes.get(session_id)
        if found is None:
            raise UnknownSession(session_id=session_id)
        return found

    def stats(self) -> SessionStats:
        with self._lock:
            return SessionStats(
                active_sessions=len(self._active),
                total_sessions_created=self._created,
                total_sessions_completed=self._completed,
                total_sessions_failed=self._failed,
            )
