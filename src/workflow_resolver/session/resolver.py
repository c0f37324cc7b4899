"""Argument resolution: one value per argument spec, in declaration order.

The resolver talks to the user through a :class:`Prompter` and runs dynamic
enum commands through a :class:`SubcommandExecutor`. It never runs the
finalized workflow command.

Input-validation errors (bad number, unrecognised yes/no, value outside the
option list) are handled here by warning and prompting again. Everything else
propagates as a :class:`ResolutionError`.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

from workflow_resolver.errors import (
    EnumCommandFailed,
    InputValidationError,
    InvalidBoolean,
    InvalidChoice,
    InvalidNumber,
    SessionCancelled,
)
from workflow_resolver.workflow.models import ArgumentSpec, ArgumentType, WorkflowDefinition
from workflow_resolver.workflow.template import substitute_known

logger = logging.getLogger(__name__)

BOOLEAN_OPTIONS: tuple[str, ...] = ("true", "false")

_TRUE_WORDS = frozenset({"y", "yes", "true", "t", "1", "on"})
_FALSE_WORDS = frozenset({"n", "no", "false", "f", "0", "off"})

_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


@dataclass(frozen=True, slots=True)
class PromptSpec:
    """What to ask the user for one argument."""

    argument: str
    label: str
    arg_type: ArgumentType = ArgumentType.TEXT
    default: str | None = None
    options: tuple[str, ...] | None = None


class Prompter(Protocol):
    """Interactive input.

    ``ask`` returns the raw entered string; returning the default unchanged
    means the user accepted it. Ctrl-C / EOF propagate as ``KeyboardInterrupt``
    / ``EOFError`` and cancel the session.
    """

    def ask(self, spec: PromptSpec) -> str: ...

    def warn(self, message: str) -> None: ...


@dataclass(frozen=True, slots=True)
class CommandOutput:
    stdout: str
    stderr: str
    exit_status: int


class SubcommandExecutor(Protocol):
    """Runs a dynamic enum command.

    Raises ``TimeoutError`` when ``timeout`` expires and ``OSError`` when the
    process cannot be started.
    """

    def run(self, command: str, *, timeout: float | None = None) -> CommandOutput: ...


class ResolutionListener(Protocol):
    """Receives resolution steps so they can be journaled."""

    def argument_prompted(self, spec: ArgumentSpec, prompt: PromptSpec, *, index: int, attempt: int) -> None: ...

    def enum_command_executed(
        self, spec: ArgumentSpec, *, command: str, output: CommandOutput, options: tuple[str, ...]
    ) -> None: ...


class _NullListener:
    def argument_prompted(self, spec: ArgumentSpec, prompt: PromptSpec, *, index: int, attempt: int) -> None:
        return None

    def enum_command_executed(
        self, spec: ArgumentSpec, *, command: str, output: CommandOutput, options: tuple[str, ...]
    ) -> None:
        return None


@dataclass(frozen=True, slots=True)
class ResolvedArgument:
    name: str
    value: str
    used_default: bool = False


def derive_options(stdout: str) -> tuple[str, ...]:
    """Turn command output into enum options: one per non-blank, trimmed line."""

    return tuple(line.strip() for line in stdout.splitlines() if line.strip())


def normalize_boolean(raw: str) -> str | None:
    word = raw.strip().lower()
    if word in _TRUE_WORDS:
        return "true"
    if word in _FALSE_WORDS:
        return "false"
    return None


def is_number(raw: str) -> bool:
    return bool(_NUMBER_PATTERN.match(raw.strip()))


def validate_value(spec: ArgumentSpec, raw: str, options: tuple[str, ...] | None = None) -> tuple[str, bool]:
    """Validate one entered value and return ``(canonical_value, used_default)``.

    Empty input falls back to the default when there is one.

    Raises:
        InputValidationError: recoverable; the caller should prompt again.
    """

    entered = raw.strip()
    used_default = spec.default_value is not None and (not entered or raw == spec.default_value)
    candidate = spec.default_value if used_default else raw

    if spec.arg_type is ArgumentType.TEXT:
        return (candidate if candidate is not None else ""), used_default

    value = (candidate or "").strip()

    if spec.arg_type is ArgumentType.NUMBER:
        if not is_number(value):
            raise InvalidNumber(argument=spec.name, value=value)
        return value, used_default

    if spec.arg_type is ArgumentType.BOOLEAN:
        normalized = normalize_boolean(value)
        if normalized is None:
            raise InvalidBoolean(argument=spec.name, value=value)
        return normalized, used_default

    if options is None or value not in options:
        raise InvalidChoice(argument=spec.name, value=value)
    return value, used_default


class ArgumentResolver:
    """Obtains a validated value for each argument of a workflow."""

    def __init__(
        self,
        *,
        prompter: Prompter,
        executor: SubcommandExecutor,
        enum_command_timeout: float | None = None,
    ) -> None:
        self._prompter = prompter
        self._executor = executor
        self._enum_command_timeout = enum_command_timeout

    def resolve_all(
        self, definition: WorkflowDefinition, listener: ResolutionListener | None = None
    ) -> list[ResolvedArgument]:
        resolved: dict[str, str] = {}
        results: list[ResolvedArgument] = []
        for index, spec in enumerate(definition.arguments):
            result = self.resolve_argument(spec, index=index, resolved=resolved, listener=listener)
            resolved[result.name] = result.value
            results.append(result)
        return results

    def resolve_argument(
        self,
        spec: ArgumentSpec,
        *,
        index: int,
        resolved: Mapping[str, str],
        listener: ResolutionListener | None = None,
    ) -> ResolvedArgument:
        """Resolve one argument, re-prompting until the input is valid.

        Args:
            spec: The argument to resolve.
            index: Position of ``spec`` in the workflow.
            resolved: Values of the arguments before it; dynamic enum commands
                may reference them as placeholders.
            listener: Notified of prompts and enum command runs.

        Raises:
            EnumCommandFailed: the options command failed or produced nothing.
            SessionCancelled: the user aborted the prompt.
        """

        listener = listener or _NullListener()
        options = self._options_for(spec, resolved, listener)
        prompt = PromptSpec(
            argument=spec.name,
            label=spec.prompt_label,
            arg_type=spec.arg_type,
            default=spec.default_value,
            options=options,
        )

        attempt = 1
        while True:
            listener.argument_prompted(spec, prompt, index=index, attempt=attempt)
            try:
                raw = self._prompter.ask(prompt)
            except (KeyboardInterrupt, EOFError) as e:
                raise SessionCancelled(argument=spec.name) from e

            try:
                value, used_default = validate_value(spec, raw, options)
            except InputValidationError as e:
                logger.info(
                    "Rejected input; prompting again",
                    extra={"argument": spec.name, "attempt": attempt, "error": type(e).__name__},
                )
                self._prompter.warn(str(e))
                attempt += 1
                continue

            return ResolvedArgument(name=spec.name, value=value, used_default=used_default)

    def _options_for(
        self, spec: ArgumentSpec, resolved: Mapping[str, str], listener: ResolutionListener
    ) -> tuple[str, ...] | None:
        if spec.arg_type is ArgumentType.BOOLEAN:
            return BOOLEAN_OPTIONS
        source = spec.enum_source
        if source == "static":
            return spec.enum_variants
        if source == "dynamic":
            return self._run_enum_command(spec, resolved, listener)
        return None

    def _run_enum_command(
        self, spec: ArgumentSpec, resolved: Mapping[str, str], listener: ResolutionListener
    ) -> tuple[str, ...]:
        template = spec.enum_command or ""

        if spec.dynamic_resolution and spec.dynamic_resolution not in resolved:
            raise EnumCommandFailed(
                argument=spec.name,
                command=template,
                reason=f"references unresolved argument {spec.dynamic_resolution!r}",
            )
        command = substitute_known(template, resolved)

        logger.debug("Running enum command", extra={"argument": spec.name, "command": command})
        try:
            output = self._executor.run(command, timeout=self._enum_command_timeout)
        except TimeoutError as e:
            raise EnumCommandFailed(
                argument=spec.name,
                command=command,
                reason=f"timed out after {self._enum_command_timeout}s",
            ) from e
        except OSError as e:
            raise EnumCommandFailed(
                argument=spec.name, command=command, reason=f"could not start: {e}"
            ) from e

        options = derive_options(output.stdout)
        listener.enum_command_executed(spec, command=command, output=output, options=options)

        if output.exit_status != 0:
            raise EnumCommandFailed(
                argument=spec.name,
                command=command,
                reason=f"exit status {output.exit_status}",
                stderr=output.stderr,
                exit_status=output.exit_status,
            )
        if not options:
            raise EnumCommandFailed(
                argument=spec.name,
                command=command,
                reason="produced no options",
                stderr=output.stderr,
                exit_status=output.exit_status,
            )
        return options
