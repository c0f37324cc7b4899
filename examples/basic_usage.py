#!/usr/bin/env python3
"""Programmatic resolution example.

This demonstrates using the session components directly:

* load a workflow definition from YAML
* resolve its arguments from ``--set name=value`` pairs instead of a terminal
* print the finalized command and the replay rebuilt from the journal

Dynamic enum commands still run through the configured shell.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from workflow_resolver.adapters import ShellExecutor
from workflow_resolver.config import WorkflowSettings
from workflow_resolver.errors import ClipboardUnavailable, ParseError
from workflow_resolver.logging import configure_logging
from workflow_resolver.session import InMemoryJournal, PromptSpec, WorkflowManager, replay
from workflow_resolver.workflow import load_workflow_file


class PresetPrompter:
    """Answers each prompt from a fixed mapping; missing names take the default."""

    def __init__(self, values: dict[str, str]) -> None:
        self._values = values

    def ask(self, spec: PromptSpec) -> str:
        return self._values.get(spec.argument, spec.default or "")

    def warn(self, message: str) -> None:
        # A preset value that fails validation would be offered again forever.
        raise ValueError(message)


class NoClipboard:
    def copy(self, text: str) -> None:
        raise ClipboardUnavailable(reason="example prints instead of copying")


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Resolve a workflow without prompting (programmatic example).")
    parser.add_argument("workflow", type=Path, help="Path to a workflow YAML file")
    parser.add_argument(
        "--set",
        dest="values",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Argument value (repeatable)",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    values = dict(item.split("=", 1) for item in args.values if "=" in item)

    settings = WorkflowSettings()
    configure_logging(settings.log_level)

    try:
        definition = load_workflow_file(args.workflow)
    except ParseError as exc:
        print(str(exc))
        return 2

    journal = InMemoryJournal()
    manager = WorkflowManager.from_settings(
        settings,
        journal=journal,
        prompter=PresetPrompter(values),
        executor=ShellExecutor(settings.shell),
        clipboard=NoClipboard(),
    )

    outcome = manager.run(definition)
    if not outcome.succeeded:
        print(f"failed: {outcome.error}")
        return 3

    print(outcome.command)
    print(replay(journal.read_all(outcome.session_id)))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
