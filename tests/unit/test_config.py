"""Unit tests for settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from workflow_resolver.config import WorkflowSettings


def test_settings_defaults(clean_env: Path) -> None:
    settings = WorkflowSettings()

    assert settings.log_level == "WARNING"
    assert settings.workflows_dir == Path("workflows")
    assert settings.journal_backend == "jsonl"
    assert settings.journal_path == Path(".workflow/journal.jsonl")
    assert settings.enum_command_timeout_seconds == 30.0
    assert settings.max_chain_depth == 5
    assert settings.shell == "sh"
    assert settings.chain_prefix == "workflow run"


def test_settings_loads_from_dotenv(clean_env: Path) -> None:
    (clean_env / ".env").write_text(
        "\n".join(
            [
                "LOG_LEVEL=DEBUG",
                "WORKFLOWS_DIR=my-workflows",
                "WORKFLOW_JOURNAL_BACKEND=memory",
                "WORKFLOW_ENUM_TIMEOUT_SECONDS=2.5",
                "",
            ]
        ),
        encoding="utf-8",
    )

    settings = WorkflowSettings()

    assert settings.log_level == "DEBUG"
    assert settings.workflows_dir == Path("my-workflows")
    assert settings.journal_backend == "memory"
    assert settings.enum_command_timeout_seconds == 2.5


def test_environment_overrides_dotenv(clean_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (clean_env / ".env").write_text("WORKFLOW_MAX_CHAIN_DEPTH=1\n", encoding="utf-8")
    monkeypatch.setenv("WORKFLOW_MAX_CHAIN_DEPTH", "3")

    assert WorkflowSettings().max_chain_depth == 3


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("WORKFLOW_JOURNAL_BACKEND", "sqlite"),
        ("WORKFLOW_ENUM_TIMEOUT_SECONDS", "0"),
        ("WORKFLOW_MAX_CHAIN_DEPTH", "-1"),
        ("WORKFLOW_SHELL", "   "),
    ],
)
def test_invalid_settings_are_rejected(clean_env: Path, monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        WorkflowSettings()
