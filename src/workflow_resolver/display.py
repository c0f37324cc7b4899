# display.py
# All terminal output for the workflow CLI.
#
# main.py never formats strings for the user; it calls named functions here.
#
# Colour language:
#   cyan   : workflow names / session ids
#   green  : finalized command, copied
#   yellow : fallbacks and warnings
#   red    : failures

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from workflow_resolver.errors import ParseError
from workflow_resolver.session.journal import ReplayResult
from workflow_resolver.session.processor import SessionOutcome
from workflow_resolver.session.state_machine import SessionPhase
from workflow_resolver.workflow.loader import WorkflowCatalog

console = Console()
err_console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


def session_header(name: str, description: str) -> None:
    console.print()
    title = f"[bold cyan]{escape(name)}[/bold cyan]"
    if description:
        title += f"\n[dim]{escape(description)}[/dim]"
    console.print(Panel.fit(title, border_style="cyan"))


def outcome(result: SessionOutcome) -> None:
    """Report a session and, depth-first, every session it chained into."""

    indent = "  " * result.chain_depth
    if result.phase is SessionPhase.COMPLETED and result.command is not None:
        if result.clipboard_error is None and result.error is None:
            console.print(f"{indent}[green]✔ Copied to clipboard:[/green]")
            console.print(f"{indent}  {escape(result.command)}", soft_wrap=True)
        else:
            clipboard_fallback(result.command, str(result.clipboard_error or result.error), indent=indent)
    else:
        failure(result.workflow_name, str(result.error) if result.error else "unknown error", indent=indent)

    if result.chain_error is not None:
        err_console.print(f"{indent}[yellow]{escape(str(result.chain_error))}[/yellow]", soft_wrap=True)
    for child in result.children:
        outcome(child)


def clipboard_fallback(command: str, reason: str, *, indent: str = "") -> None:
    err_console.print(f"{indent}[yellow]⚠ {escape(reason)}; copy the command below:[/yellow]", soft_wrap=True)
    console.print(f"{indent}{escape(command)}", soft_wrap=True, highlight=False)


def failure(workflow: str, message: str, *, indent: str = "") -> None:
    err_console.print(f"{indent}[red]✘ {escape(workflow)} failed:[/red] {escape(message)}", soft_wrap=True)


def parse_error(error: ParseError) -> None:
    err_console.print(f"[red]✘ Invalid workflow:[/red] {escape(str(error))}", soft_wrap=True)


def message(text: str) -> None:
    err_console.print(escape(text), soft_wrap=True)


# ---------------------------------------------------------------------------
# Listing and replay
# ---------------------------------------------------------------------------


def workflow_list(catalog: WorkflowCatalog) -> None:
    table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("File", style="dim")
    for definition in catalog:
        path = catalog.paths.get(definition.name)
        table.add_row(
            escape(definition.name),
            escape(definition.description),
            escape(path.name if path else ""),
        )
    console.print(table)
    for error in catalog.errors:
        parse_error(error)


def session_list(session_ids: list[str]) -> None:
    for session_id in session_ids:
        console.print(f"[cyan]{session_id}[/cyan]")


def replay_result(result: ReplayResult) -> None:
    table = Table(box=box.SIMPLE, show_header=False)
    table.add_column("", style="dim")
    table.add_column("")
    table.add_row("session", f"[cyan]{result.session_id}[/cyan]")
    table.add_row("workflow", escape(result.workflow_name))
    table.add_row("state", result.phase.value)
    if result.parent_session_id:
        table.add_row("chained from", result.parent_session_id)
    for name, value in result.resolved.items():
        table.add_row(f"  {escape(name)}", escape(value))
    if result.command is not None:
        table.add_row("command", f"[green]{escape(result.command)}[/green]")
    if result.failure is not None:
        where = result.failure.phase
        if result.failure.argument_name:
            where += f", argument {result.failure.argument_name!r}"
        table.add_row(
            "failure",
            f"[red]{escape(result.failure.error_kind)}[/red] ({escape(where)}): "
            f"{escape(result.failure.message)}",
        )
    console.print(table)
