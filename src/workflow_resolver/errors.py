"""Error taxonomy for workflow loading, resolution and delivery.

Input-validation errors are recoverable and never leave the argument resolver.
Resolution errors end the session in ``Failed`` and are journaled.
"""

from __future__ import annotations

from dataclasses import dataclass


class WorkflowError(Exception):
    """Base class for every error raised by this package."""


# ---------------------------------------------------------------------------
# Load time
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ParseError(WorkflowError):
    """A workflow definition could not be parsed or validated."""

    source: str
    message: str
    line: int | None = None
    field: str | None = None

    def __str__(self) -> str:
        where = self.source
        if self.line is not None:
            where = f"{where}:{self.line}"
        if self.field:
            return f"{where}: {self.field}: {self.message}"
        return f"{where}: {self.message}"


class DuplicateArgumentName(ParseError):
    """Two arguments in one workflow share a name."""


# ---------------------------------------------------------------------------
# Recoverable input validation
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class InputValidationError(WorkflowError):
    argument: str
    value: str

    def __str__(self) -> str:
        return f"Invalid value for {self.argument!r}: {self.value!r}"


class InvalidNumber(InputValidationError):
    def __str__(self) -> str:
        return f"{self.value!r} is not a number (argument {self.argument!r})"


class InvalidBoolean(InputValidationError):
    def __str__(self) -> str:
        return f"{self.value!r} is not yes/no (argument {self.argument!r})"


class InvalidChoice(InputValidationError):
    def __str__(self) -> str:
        return f"{self.value!r} is not one of the allowed options (argument {self.argument!r})"


# ---------------------------------------------------------------------------
# Session-fatal resolution errors
# ---------------------------------------------------------------------------


class ResolutionError(WorkflowError):
    """Non-recoverable; the session transitions to ``Failed``.

    Subclasses carry the ``argument`` being resolved when the error is tied to one.
    """


@dataclass(frozen=True, slots=True)
class EnumCommandFailed(ResolutionError):
    argument: str
    command: str
    reason: str
    stderr: str = ""
    exit_status: int | None = None

    def __str__(self) -> str:
        msg = f"Options command for {self.argument!r} failed ({self.reason}): {self.command}"
        if self.stderr.strip():
            msg += f"\n{self.stderr.strip()}"
        return msg


@dataclass(frozen=True, slots=True)
class UnboundPlaceholder(ResolutionError):
    name: str
    argument: str | None = None

    def __str__(self) -> str:
        return f"Template placeholder {{{{{self.name}}}}} has no resolved value"


@dataclass(frozen=True, slots=True)
class SessionCancelled(ResolutionError):
    argument: str | None = None

    def __str__(self) -> str:
        if self.argument:
            return f"Cancelled while prompting for {self.argument!r}"
        return "Cancelled by user"


# ---------------------------------------------------------------------------
# Delivery, chaining, journal
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ClipboardUnavailable(WorkflowError):
    reason: str

    def __str__(self) -> str:
        return f"Clipboard unavailable: {self.reason}"


class ChainError(WorkflowError):
    """A finalized command could not be chained into another workflow."""


@dataclass(frozen=True, slots=True)
class ChainDepthExceeded(ChainError):
    workflow: str
    max_depth: int

    def __str__(self) -> str:
        return f"Not chaining into {self.workflow!r}: maximum chain depth {self.max_depth} reached"


@dataclass(frozen=True, slots=True)
class ChainCycle(ChainError):
    workflow: str
    path: tuple[str, ...]

    def __str__(self) -> str:
        chain = " -> ".join((*self.path, self.workflow))
        return f"Not chaining into {self.workflow!r}: cycle {chain}"


@dataclass(frozen=True, slots=True)
class JournalCorrupted(WorkflowError):
    session_id: str
    message: str

    def __str__(self) -> str:
        return f"Journal for session {self.session_id} is inconsistent: {self.message}"


@dataclass(frozen=True, slots=True)
class UnknownSession(WorkflowError):
    session_id: str

    def __str__(self) -> str:
        return f"Unknown session: {self.session_id}"
