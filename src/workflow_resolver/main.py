"""CLI entrypoint for the workflow resolver.

Exit codes:
- 0: command resolved and copied to the clipboard
- 1: unexpected failure
- 2: configuration error, unknown or unparseable workflow
- 3: resolution failed (the message names the cause)
- 4: resolved, but the clipboard was unavailable (command printed instead)
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Iterator
from pathlib import Path

from pydantic import ValidationError

from workflow_resolver import __version__, display
from workflow_resolver.adapters import ShellExecutor, SystemClipboard, TerminalPrompter
from workflow_resolver.config import WorkflowSettings
from workflow_resolver.errors import JournalCorrupted, ParseError, SessionCancelled
from workflow_resolver.logging import configure_logging
from workflow_resolver.session.journal import create_journal, replay
from workflow_resolver.session.manager import WorkflowManager
from workflow_resolver.session.processor import SessionOutcome
from workflow_resolver.session.resolver import ArgumentResolver, Prompter
from workflow_resolver.session.state_machine import SessionPhase
from workflow_resolver.workflow.loader import WORKFLOW_SUFFIXES, WorkflowCatalog, load_workflow_file
from workflow_resolver.workflow.models import ArgumentSpec, ArgumentType, WorkflowDefinition

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_USAGE = 2
EXIT_RESOLUTION_FAILED = 3
EXIT_CLIPBOARD_UNAVAILABLE = 4


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workflow",
        description=(
            "Resolve a parameterized shell command workflow interactively and copy "
            "the result to the clipboard"
        ),
    )
    parser.add_argument("--version", action="version", version=f"workflow-resolver {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Resolve a workflow and copy the command")
    run.add_argument(
        "target",
        nargs="?",
        help=(
            "Workflow name (from WORKFLOWS_DIR) or path to a workflow YAML file; "
            "omit it to pick from WORKFLOWS_DIR"
        ),
    )

    subparsers.add_parser("list", help="List the workflows in WORKFLOWS_DIR")
    subparsers.add_parser("sessions", help="List session ids recorded in the journal")

    replay_cmd = subparsers.add_parser(
        "replay", help="Reconstruct a session from the journal without prompting"
    )
    replay_cmd.add_argument("session_id", help="Session id (see 'workflow sessions')")

    return parser


def _select_workflow(target: str, catalog: WorkflowCatalog) -> WorkflowDefinition | None:
    path = Path(target)
    if path.suffix in WORKFLOW_SUFFIXES and path.is_file():
        definition = load_workflow_file(path)
        if catalog.get(definition.name) is None:
            catalog.add(definition, path=path)
        return definition
    return catalog.get(target)


def _pick_workflow(catalog: WorkflowCatalog, prompter: Prompter) -> WorkflowDefinition:
    """Ask for one of the catalog's workflows, the same way an Enum argument is asked.

    Raises:
        SessionCancelled: the user aborted the prompt.
    """

    choice = ArgumentSpec(
        name="workflow",
        arg_type=ArgumentType.ENUM,
        description="Workflow",
        enum_variants=tuple(definition.name for definition in catalog),
    )
    resolver = ArgumentResolver(prompter=prompter, executor=ShellExecutor())
    picked = resolver.resolve_argument(choice, index=0, resolved={})
    return catalog.definitions[picked.value]


def _walk(outcome: SessionOutcome) -> Iterator[SessionOutcome]:
    yield outcome
    for child in outcome.children:
        yield from _walk(child)


def exit_code_for(outcome: SessionOutcome) -> int:
    sessions = list(_walk(outcome))
    if any(s.phase is not SessionPhase.COMPLETED for s in sessions):
        return EXIT_RESOLUTION_FAILED
    if any(s.error is not None for s in sessions):
        return EXIT_UNEXPECTED
    if any(s.clipboard_error is not None for s in sessions):
        return EXIT_CLIPBOARD_UNAVAILABLE
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = WorkflowSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return EXIT_USAGE

    configure_logging(settings.log_level)

    try:
        if args.command == "run":
            catalog = WorkflowCatalog.from_directory(settings.workflows_dir)
            prompter = TerminalPrompter(display.console)
            if args.target is None:
                display.workflow_list(catalog)
                if not len(catalog):
                    display.message(f"No workflows found in {settings.workflows_dir}")
                    return EXIT_USAGE
                try:
                    definition = _pick_workflow(catalog, prompter)
                except SessionCancelled as e:
                    display.message(str(e))
                    return EXIT_RESOLUTION_FAILED
            else:
                definition = _select_workflow(args.target, catalog)
            if definition is None:
                display.message(
                    f"Unknown workflow {args.target!r} (looked in {settings.workflows_dir})"
                )
                return EXIT_USAGE

            manager = WorkflowManager.from_settings(
                settings,
                journal=create_journal(settings),
                prompter=prompter,
                executor=ShellExecutor(settings.shell),
                clipboard=SystemClipboard(),
                lookup=catalog.get,
            )
            display.session_header(definition.name, definition.description)
            outcome = manager.run(definition)
            display.outcome(outcome)
            return exit_code_for(outcome)

        if args.command == "list":
            catalog = WorkflowCatalog.from_directory(settings.workflows_dir)
            display.workflow_list(catalog)
            return EXIT_OK

        if args.command == "sessions":
            journal = create_journal(settings)
            display.session_list(journal.session_ids())
            return EXIT_OK

        if args.command == "replay":
            journal = create_journal(settings)
            events = journal.read_all(args.session_id)
            if not events:
                display.message(f"No journal entries for session {args.session_id}")
                return EXIT_USAGE
            result = replay(events)
            display.replay_result(result)
            return EXIT_OK if result.phase is SessionPhase.COMPLETED else EXIT_RESOLUTION_FAILED

        logger.error("Unknown command", extra={"command": args.command})
        return EXIT_USAGE

    except ParseError as e:
        logger.warning(str(e), extra={"source": e.source, "line": e.line, "field": e.field})
        display.parse_error(e)
        return EXIT_USAGE

    except JournalCorrupted as e:
        logger.error(str(e), extra={"session_id": e.session_id})
        display.message(str(e))
        return EXIT_UNEXPECTED

    except Exception:
        logger.exception("Command failed")
        return EXIT_UNEXPECTED


if __name__ == "__main__":
    raise SystemExit(main())
