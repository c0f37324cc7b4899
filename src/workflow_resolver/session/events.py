"""Journal events emitted while a session resolves a workflow.

Events are immutable. Within a session they carry a strictly increasing
``sequence`` starting at 0.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class _EventBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    session_id: str
    sequence: int = Field(ge=0)
    timestamp: datetime = Field(default_factory=_utc_now)


class SessionStarted(_EventBase):
    kind: Literal["SessionStarted"] = "SessionStarted"
    workflow_name: str
    command_template: str
    argument_names: tuple[str, ...] = ()
    parent_session_id: str | None = None
    chain_depth: int = 0


class ArgumentPrompted(_EventBase):
    kind: Literal["ArgumentPrompted"] = "ArgumentPrompted"
    argument_name: str
    index: int
    attempt: int = 1
    default_value: str | None = None
    options: tuple[str, ...] | None = None


class EnumCommandExecuted(_EventBase):
    kind: Literal["EnumCommandExecuted"] = "EnumCommandExecuted"
    argument_name: str
    command: str
    exit_status: int
    options: tuple[str, ...] = ()
    stderr: str = ""


class ArgumentResolved(_EventBase):
    kind: Literal["ArgumentResolved"] = "ArgumentResolved"
    argument_name: str
    index: int
    value: str
    used_default: bool = False


class ResolutionFailed(_EventBase):
    kind: Literal["ResolutionFailed"] = "ResolutionFailed"
    error_kind: str
    message: str
    argument_name: str | None = None
    phase: str


class CommandFinalized(_EventBase):
    kind: Literal["CommandFinalized"] = "CommandFinalized"
    command: str


Event = Annotated[
    SessionStarted
    | ArgumentPrompted
    | EnumCommandExecuted
    | ArgumentResolved
    | ResolutionFailed
    | CommandFinalized,
    Field(discriminator="kind"),
]

_EVENT_ADAPTER: TypeAdapter[Event] = TypeAdapter(Event)


def event_from_json(raw: str | bytes) -> Event:
    return _EVENT_ADAPTER.validate_json(raw)
