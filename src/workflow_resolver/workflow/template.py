"""Placeholder substitution for command templates.

A placeholder is a literal ``{{name}}`` span. Spans are not nested and there
is no escape syntax: the first ``}}`` after an opening ``{{`` closes it.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from workflow_resolver.errors import UnboundPlaceholder

PLACEHOLDER_PATTERN = re.compile(r"\{\{(.*?)\}\}")


def find_placeholders(template: str) -> list[str]:
    """Return placeholder names in order of first appearance."""

    seen: list[str] = []
    for match in PLACEHOLDER_PATTERN.finditer(template):
        name = match.group(1).strip()
        if name not in seen:
            seen.append(name)
    return seen


def render_command(template: str, values: Mapping[str, str]) -> str:
    """Replace every placeholder in ``template`` with its value.

    Substituted values are inserted verbatim and never scanned again, so a
    value that itself contains ``{{...}}`` is left alone.

    Raises:
        UnboundPlaceholder: the template names a value that is not in ``values``.
    """

    def _substitute(match: re.Match[str]) -> str:
        name = match.group(1).strip()
        if name not in values:
            raise UnboundPlaceholder(name=name)
        return values[name]

    return PLACEHOLDER_PATTERN.sub(_substitute, template)


def substitute_known(template: str, values: Mapping[str, str]) -> str:
    """Replace only the placeholders named in ``values``.

    Other ``{{...}}`` spans are left as written; shell commands use them for
    their own templating (``docker ps --format '{{.Names}}'``).
    """

    def _substitute(match: re.Match[str]) -> str:
        name = match.group(1).strip()
        return values.get(name, match.group(0))

    return PLACEHOLDER_PATTERN.sub(_substitute, template)
