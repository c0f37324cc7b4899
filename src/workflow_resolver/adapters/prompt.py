"""Interactive terminal prompts built on rich."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from workflow_resolver.session.resolver import PromptSpec
from workflow_resolver.workflow.models import ArgumentType


class TerminalPrompter:
    """Asks for argument values on the terminal.

    Option lists are shown numbered; entering a number picks that option.
    Validation is left to the resolver so every rejection goes through the
    same re-prompt path.
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    def ask(self, spec: PromptSpec) -> str:
        label = f"[bold]{escape(spec.label)}[/bold]"
        options = spec.options

        if spec.arg_type is ArgumentType.BOOLEAN:
            label += " [dim](y/n)[/dim]"
        elif options:
            for number, option in enumerate(options, start=1):
                self._console.print(f"  [cyan]{number:>3}[/cyan]  {escape(option)}")

        if spec.default is not None:
            raw = Prompt.ask(label, console=self._console, default=spec.default)
        else:
            raw = Prompt.ask(label, console=self._console)

        if options and spec.arg_type is ArgumentType.ENUM:
            picked = raw.strip()
            if picked.isdigit() and 1 <= int(picked) <= len(options):
                return options[int(picked) - 1]
        return raw

    def warn(self, message: str) -> None:
        self._console.print(f"[yellow]{escape(message)}[/yellow]")
