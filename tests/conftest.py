"""Test configuration and fixtures."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from pathlib import Path

import pytest

from workflow_resolver.errors import ClipboardUnavailable
from workflow_resolver.session.journal import InMemoryJournal
from workflow_resolver.session.resolver import CommandOutput, PromptSpec
from workflow_resolver.workflow.loader import load_workflow
from workflow_resolver.workflow.models import WorkflowDefinition

SETTINGS_ENV_VARS = (
    "LOG_LEVEL",
    "WORKFLOWS_DIR",
    "WORKFLOW_JOURNAL_BACKEND",
    "WORKFLOW_JOURNAL_PATH",
    "WORKFLOW_ENUM_TIMEOUT_SECONDS",
    "WORKFLOW_MAX_CHAIN_DEPTH",
    "WORKFLOW_SHELL",
    "WORKFLOW_CHAIN_PREFIX",
)


class ScriptedPrompter:
    """Answers prompts from a script; an exception in the script is raised instead."""

    def __init__(self, answers: Iterable[str | BaseException] = ()) -> None:
        self.answers = list(answers)
        self.prompts: list[PromptSpec] = []
        self.warnings: list[str] = []
        self.gate: threading.Event | None = None

    def ask(self, spec: PromptSpec) -> str:
        self.prompts.append(spec)
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if not self.answers:
            raise EOFError("script exhausted")
        answer = self.answers.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    def warn(self, message: str) -> None:
        self.warnings.append(message)


class FakeExecutor:
    """Returns canned output per command; unknown commands exit 127."""

    def __init__(self, outputs: dict[str, CommandOutput | BaseException] | None = None) -> None:
        self.outputs = dict(outputs or {})
        self.calls: list[tuple[str, float | None]] = []

    def run(self, command: str, *, timeout: float | None = None) -> CommandOutput:
        self.calls.append((command, timeout))
        result = self.outputs.get(command)
        if result is None:
            return CommandOutput(stdout="", stderr=f"sh: {command}: not found\n", exit_status=127)
        if isinstance(result, BaseException):
            raise result
        return result


class RecordingClipboard:
    def __init__(self, *, available: bool = True) -> None:
        self.available = available
        self.copied: list[str] = []

    def copy(self, text: str) -> None:
        if not self.available:
            raise ClipboardUnavailable(reason="no clipboard tool found")
        self.copied.append(text)


def output(stdout: str = "", *, stderr: str = "", exit_status: int = 0) -> CommandOutput:
    return CommandOutput(stdout=stdout, stderr=stderr, exit_status=exit_status)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Run in an empty directory with no settings in the environment."""
    for name in SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def journal() -> InMemoryJournal:
    return InMemoryJournal()


@pytest.fixture
def clipboard() -> RecordingClipboard:
    return RecordingClipboard()


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def echo_workflow() -> WorkflowDefinition:
    """Provide a one-argument workflow: ``echo {{msg}}``."""
    return load_workflow(
        """
name: Echo
command: echo {{msg}}
arguments:
  - name: msg
    description: What to say
"""
    )


@pytest.fixture
def deploy_workflow() -> WorkflowDefinition:
    """Provide a workflow using every argument type, with a dependent dynamic enum."""
    return load_workflow(
        """
name: Deploy
command: deploy --env {{env}} --replicas {{replicas}} --branch {{branch}} --force={{force}}
description: Deploy a branch
arguments:
  - name: env
    arg_type: Enum
    enum_variants: [dev, staging, prod]
    default_value: dev
  - name: replicas
    arg_type: Number
    default_value: 2
  - name: branch
    arg_type: Enum
    enum_command: git branch --list --remote {{env}}/*
    dynamic_resolution: env
  - name: force
    arg_type: Boolean
    default_value: false
"""
    )
