"""Resolution sessions.

This package contains:
- the argument resolver (prompting, validation, dynamic enum options)
- the per-session state machine and its command processor
- the append-only event journal and replay
- the workflow manager that supervises sessions and chaining
"""

from workflow_resolver.session.journal import InMemoryJournal, Journal, JsonlJournal, replay
from workflow_resolver.session.manager import WorkflowManager
from workflow_resolver.session.processor import CommandProcessor, SessionOutcome
from workflow_resolver.session.resolver import ArgumentResolver, PromptSpec, ResolvedArgument
from workflow_resolver.session.state_machine import SessionPhase

__all__ = [
    "ArgumentResolver",
    "CommandProcessor",
    "InMemoryJournal",
    "Journal",
    "JsonlJournal",
    "PromptSpec",
    "ResolvedArgument",
    "SessionOutcome",
    "SessionPhase",
    "WorkflowManager",
    "replay",
]
