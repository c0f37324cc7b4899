"""Configuration for the workflow resolver.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Pydantic-settings supports overriding the env file in tests via
`WorkflowSettings(_env_file=path_to_env)`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

JournalBackend = Literal["memory", "jsonl"]


class WorkflowSettings(BaseSettings):
    """Settings for resolving workflows.

    Environment variables:
    - LOG_LEVEL                       (optional)
    - WORKFLOWS_DIR                   (optional)
    - WORKFLOW_JOURNAL_BACKEND        (optional, memory | jsonl)
    - WORKFLOW_JOURNAL_PATH           (optional)
    - WORKFLOW_ENUM_TIMEOUT_SECONDS   (optional)
    - WORKFLOW_MAX_CHAIN_DEPTH        (optional)
    - WORKFLOW_SHELL                  (optional)
    - WORKFLOW_CHAIN_PREFIX           (optional)
    """

    log_level: str = Field(
        default="WARNING",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    workflows_dir: Path = Field(
        default=Path("workflows"),
        validation_alias="WORKFLOWS_DIR",
        description="Directory scanned for *.yaml / *.yml workflow definitions",
    )

    journal_backend: JournalBackend = Field(
        default="jsonl",
        validation_alias="WORKFLOW_JOURNAL_BACKEND",
        description="Event journal backend: 'memory' (volatile) or 'jsonl' (durable)",
    )
    journal_path: Path = Field(
        default=Path(".workflow/journal.jsonl"),
        validation_alias="WORKFLOW_JOURNAL_PATH",
        description="File used by the jsonl journal backend",
    )

    enum_command_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        validation_alias="WORKFLOW_ENUM_TIMEOUT_SECONDS",
        description="Timeout for commands that populate dynamic enum options",
    )
    max_chain_depth: int = Field(
        default=5,
        ge=0,
        validation_alias="WORKFLOW_MAX_CHAIN_DEPTH",
        description="How many nested workflows a chain of finalized commands may spawn",
    )

    shell: str = Field(
        default="sh",
        validation_alias="WORKFLOW_SHELL",
        description="Shell used to run dynamic enum commands ('<shell> -c <command>')",
    )
    chain_prefix: str = Field(
        default="workflow run",
        validation_alias="WORKFLOW_CHAIN_PREFIX",
        description=(
            "A finalized command of the form '<chain_prefix> <workflow-name>' starts "
            "the named workflow as a chained session"
        ),
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("shell", "chain_prefix")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()
