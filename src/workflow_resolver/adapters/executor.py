"""Runs dynamic enum commands through a shell."""

from __future__ import annotations

import logging
import subprocess

from workflow_resolver.session.resolver import CommandOutput

logger = logging.getLogger(__name__)


class ShellExecutor:
    """Run ``<shell> -c <command>`` and capture its output.

    Only used to populate dynamic enum options; finalized workflow commands
    are never executed.
    """

    def __init__(self, shell: str = "sh") -> None:
        self._shell = shell

    def run(self, command: str, *, timeout: float | None = None) -> CommandOutput:
        try:
            completed = subprocess.run(
                [self._shell, "-c", command],
                capture_output=True,
                text=True,
                errors="replace",
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise TimeoutError(f"{command!r} timed out after {timeout}s") from e

        logger.debug(
            "Enum command finished",
            extra={"command": command, "exit_status": completed.returncode},
        )
        return CommandOutput(
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            exit_status=completed.returncode,
        )
