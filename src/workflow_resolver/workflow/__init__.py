"""Workflow definitions: models, YAML loading and command templating."""

from workflow_resolver.workflow.loader import WorkflowCatalog, load_workflow, load_workflow_file
from workflow_resolver.workflow.models import ArgumentSpec, ArgumentType, WorkflowDefinition
from workflow_resolver.workflow.template import find_placeholders, render_command, substitute_known

__all__ = [
    "ArgumentSpec",
    "ArgumentType",
    "WorkflowCatalog",
    "WorkflowDefinition",
    "find_placeholders",
    "load_workflow",
    "load_workflow_file",
    "render_command",
    "substitute_known",
]
