"""Concrete collaborators: shell executor, terminal prompt and system clipboard."""

from workflow_resolver.adapters.clipboard import SystemClipboard
from workflow_resolver.adapters.executor import ShellExecutor
from workflow_resolver.adapters.prompt import TerminalPrompter

__all__ = ["ShellExecutor", "SystemClipboard", "TerminalPrompter"]
