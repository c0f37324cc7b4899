"""YAML loading for workflow definitions.

Every failure is surfaced as a :class:`ParseError` carrying the source, and
where possible the line and field, so a malformed file never reaches the
resolver.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from pydantic import ValidationError

from workflow_resolver.errors import DuplicateArgumentName, ParseError
from workflow_resolver.workflow.models import WorkflowDefinition

logger = logging.getLogger(__name__)

WORKFLOW_SUFFIXES = (".yaml", ".yml")
CONFIG_FILE_NAME = "config.yaml"


def _format_loc(loc: Sequence[int | str]) -> str:
    out = ""
    for part in loc:
        if isinstance(part, int):
            out += f"[{part}]"
        else:
            out += f".{part}" if out else str(part)
    return out


def _line_for(node: yaml.Node | None, loc: Sequence[int | str]) -> int | None:
    """Best-effort 1-based line of the YAML node addressed by ``loc``."""

    if node is None:
        return None
    line = node.start_mark.line + 1
    for part in loc:
        child: yaml.Node | None = None
        if isinstance(node, yaml.MappingNode) and isinstance(part, str):
            for key_node, value_node in node.value:
                if getattr(key_node, "value", None) == part:
                    child = value_node
                    break
        elif isinstance(node, yaml.SequenceNode) and isinstance(part, int):
            if 0 <= part < len(node.value):
                child = node.value[part]
        if child is None:
            break
        node = child
        line = node.start_mark.line + 1
    return line


def load_workflow(content: bytes | str, *, source: str = "<string>") -> WorkflowDefinition:
    """Parse one workflow definition from YAML text.

    Raises:
        ParseError: malformed YAML or an invalid definition.
        DuplicateArgumentName: two arguments share a name.
    """

    if isinstance(content, bytes):
        try:
            text = content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(source=source, message=f"not valid UTF-8: {e.reason}") from e
    else:
        text = content

    try:
        root = yaml.compose(text, Loader=yaml.SafeLoader)
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        problem = getattr(e, "problem", None) or str(e)
        raise ParseError(
            source=source,
            message=f"invalid YAML: {problem}",
            line=mark.line + 1 if mark is not None else None,
        ) from e

    if not isinstance(data, dict):
        raise ParseError(source=source, message="workflow must be a YAML mapping", line=1)

    try:
        return WorkflowDefinition.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        if first["type"] == "duplicate_argument_name":
            ctx = first.get("ctx") or {}
            loc: tuple[int | str, ...] = ("arguments", int(ctx.get("index", 0)), "name")
            raise DuplicateArgumentName(
                source=source,
                message=f"duplicate argument name {ctx.get('name')!r}",
                line=_line_for(root, loc),
                field=_format_loc(loc),
            ) from e
        loc = tuple(first["loc"])
        raise ParseError(
            source=source,
            message=first["msg"],
            line=_line_for(root, loc),
            field=_format_loc(loc) or None,
        ) from e


def load_workflow_file(path: Path) -> WorkflowDefinition:
    try:
        content = path.read_bytes()
    except OSError as e:
        raise ParseError(source=str(path), message=f"cannot read file: {e.strerror or e}") from e
    return load_workflow(content, source=str(path))


def discover_workflows(directory: Path) -> list[Path]:
    """List workflow files in ``directory`` (sorted, non-recursive)."""

    if not directory.is_dir():
        return []
    return sorted(
        p
        for p in directory.iterdir()
        if p.is_file() and p.suffix in WORKFLOW_SUFFIXES and p.name != CONFIG_FILE_NAME
    )


@dataclass
class WorkflowCatalog:
    """Workflows loaded from a directory, addressable by name or file stem.

    Files that fail to parse are kept in ``errors``; they never hide the
    workflows that did load.
    """

    definitions: dict[str, WorkflowDefinition] = field(default_factory=dict)
    paths: dict[str, Path] = field(default_factory=dict)
    errors: list[ParseError] = field(default_factory=list)

    @classmethod
    def from_directory(cls, directory: Path) -> WorkflowCatalog:
        catalog = cls()
        for path in discover_workflows(directory):
            try:
                definition = load_workflow_file(path)
            except ParseError as e:
                logger.warning("Skipping unparseable workflow", extra={"path": str(path), "error": str(e)})
                catalog.errors.append(e)
                continue
            catalog.add(definition, path=path)
        logger.debug(
            "Workflow catalog loaded",
            extra={"directory": str(directory), "count": len(catalog.definitions)},
        )
        return catalog

    def add(self, definition: WorkflowDefinition, *, path: Path | None = None) -> None:
        if definition.name in self.definitions:
            logger.warning(
                "Duplicate workflow name; keeping the first",
                extra={"workflow": definition.name, "path": str(path) if path else None},
            )
            return
        self.definitions[definition.name] = definition
        if path is not None:
            self.paths[definition.name] = path

    def get(self, name: str) -> WorkflowDefinition | None:
        found = self.definitions.get(name)
        if found is not None:
            return found
        for workflow_name, path in self.paths.items():
            if path.stem == name:
                return self.definitions[workflow_name]
        return None

    def __iter__(self) -> Iterator[WorkflowDefinition]:
        return iter(self.definitions.values())

    def __len__(self) -> int:
        return len(self.definitions)
