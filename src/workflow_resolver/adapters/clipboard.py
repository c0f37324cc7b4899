"""System clipboard sink.

Pipes text into the first platform clipboard tool found on PATH.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys

from workflow_resolver.errors import ClipboardUnavailable

logger = logging.getLogger(__name__)


def clipboard_commands(platform: str | None = None, env: dict[str, str] | None = None) -> list[list[str]]:
    """Candidate clipboard commands for ``platform``, most preferred first."""

    platform = platform or sys.platform
    env = dict(os.environ) if env is None else env

    if platform == "darwin":
        return [["pbcopy"]]
    if platform.startswith("win") or platform == "cygwin":
        return [["clip"]]

    candidates: list[list[str]] = []
    if env.get("WAYLAND_DISPLAY"):
        candidates.append(["wl-copy"])
    candidates.append(["xclip", "-selection", "clipboard"])
    candidates.append(["xsel", "--clipboard", "--input"])
    return candidates


class SystemClipboard:
    def __init__(self, commands: list[list[str]] | None = None, timeout: float = 5.0) -> None:
        self._commands = commands if commands is not None else clipboard_commands()
        self._timeout = timeout

    def copy(self, text: str) -> None:
        errors: list[str] = []
        for argv in self._commands:
            if shutil.which(argv[0]) is None:
                continue
            try:
                subprocess.run(
                    argv,
                    input=text,
                    text=True,
                    capture_output=True,
                    timeout=self._timeout,
                    check=True,
                )
            except (OSError, subprocess.SubprocessError) as e:
                errors.append(f"{argv[0]}: {e}")
                continue
            logger.debug("Copied to clipboard", extra={"tool": argv[0]})
            return

        if not errors:
            raise ClipboardUnavailable(reason="no clipboard tool found")
        raise ClipboardUnavailable(reason="; ".join(errors))
