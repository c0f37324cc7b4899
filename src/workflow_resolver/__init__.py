"""Workflow resolver.

Resolves parameterized shell command workflows (YAML definitions with
``{{placeholder}}`` templates) by prompting for each argument, then copies
the finalized command to the clipboard. Every session is journaled so it can
be replayed without prompting.
"""

__version__ = "0.1.0"

from workflow_resolver.config import WorkflowSettings

__all__ = ["__version__", "WorkflowSettings"]
