"""Unit tests for workflow models, YAML loading and the catalog."""

from __future__ import annotations

from pathlib import Path

import pytest

from workflow_resolver.errors import DuplicateArgumentName, ParseError
from workflow_resolver.workflow.loader import WorkflowCatalog, discover_workflows, load_workflow, load_workflow_file
from workflow_resolver.workflow.models import ArgumentType


def test_load_minimal_workflow() -> None:
    definition = load_workflow("name: List\ncommand: ls -la\n")

    assert definition.name == "List"
    assert definition.command == "ls -la"
    assert definition.arguments == ()
    assert definition.description == ""


def test_load_preserves_argument_order_and_types(deploy_workflow) -> None:
    assert deploy_workflow.argument_names == ["env", "replicas", "branch", "force"]
    env, replicas, branch, force = deploy_workflow.arguments

    assert env.arg_type is ArgumentType.ENUM
    assert env.enum_source == "static"
    assert env.enum_variants == ("dev", "staging", "prod")
    assert replicas.default_value == "2"
    assert branch.enum_source == "dynamic"
    assert branch.dynamic_resolution == "env"
    assert force.default_value == "false"


def test_tilde_means_no_default() -> None:
    definition = load_workflow(
        """
name: T
command: echo {{a}}
arguments:
  - name: a
    default_value: "~"
    description: "~"
"""
    )
    spec = definition.arguments[0]

    assert spec.default_value is None
    assert not spec.has_default
    assert spec.prompt_label == "a"


def test_ignores_unknown_fields_and_keeps_metadata() -> None:
    definition = load_workflow(
        """
name: T
command: "true"
tags: [git]
author: someone
source_url: https://example.com/t
extra_field: ignored
"""
    )

    assert definition.tags == ("git",)
    assert definition.author == "someone"
    assert definition.source_url == "https://example.com/t"


def test_duplicate_argument_name_reports_line_and_field() -> None:
    text = "name: Dup\ncommand: echo {{a}}\narguments:\n  - name: a\n  - name: a\n"

    with pytest.raises(DuplicateArgumentName) as exc:
        load_workflow(text, source="dup.yaml")

    assert exc.value.source == "dup.yaml"
    assert exc.value.field == "arguments[1].name"
    assert exc.value.line == 5
    assert isinstance(exc.value, ParseError)


def test_missing_command_is_parse_error() -> None:
    with pytest.raises(ParseError) as exc:
        load_workflow("name: X\n", source="x.yaml")
    assert exc.value.field == "command"


def test_invalid_yaml_reports_line() -> None:
    with pytest.raises(ParseError) as exc:
        load_workflow("name: X\ncommand: [unclosed\n", source="bad.yaml")
    assert exc.value.line is not None
    assert "invalid YAML" in exc.value.message


def test_non_mapping_document_is_rejected() -> None:
    with pytest.raises(ParseError):
        load_workflow("- just\n- a list\n")


def test_invalid_utf8_is_rejected() -> None:
    with pytest.raises(ParseError) as exc:
        load_workflow(b"name: \xff\xfe\ncommand: x\n")
    assert "UTF-8" in exc.value.message


def test_enum_needs_exactly_one_source() -> None:
    neither = "name: E\ncommand: x\narguments:\n  - name: a\n    arg_type: Enum\n"
    both = (
        "name: E\ncommand: x\narguments:\n  - name: a\n    arg_type: Enum\n"
        "    enum_variants: [x]\n    enum_command: echo x\n"
    )

    with pytest.raises(ParseError) as exc:
        load_workflow(neither)
    assert exc.value.field == "arguments[0]"
    assert exc.value.line == 4
    with pytest.raises(ParseError):
        load_workflow(both)


def test_unknown_argument_type_is_parse_error() -> None:
    with pytest.raises(ParseError) as exc:
        load_workflow("name: E\ncommand: x\narguments:\n  - name: a\n    arg_type: Date\n")
    assert exc.value.field == "arguments[0].arg_type"


def test_load_workflow_file_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ParseError) as exc:
        load_workflow_file(tmp_path / "nope.yaml")
    assert "cannot read file" in exc.value.message


def test_catalog_loads_directory_and_collects_errors(tmp_path: Path) -> None:
    (tmp_path / "echo.yaml").write_text("name: Echo\ncommand: echo {{msg}}\n", encoding="utf-8")
    (tmp_path / "list.yml").write_text("name: List\ncommand: ls\n", encoding="utf-8")
    (tmp_path / "broken.yaml").write_text("name: [\n", encoding="utf-8")
    (tmp_path / "config.yaml").write_text("not: a workflow\n", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    assert [p.name for p in discover_workflows(tmp_path)] == ["broken.yaml", "echo.yaml", "list.yml"]

    catalog = WorkflowCatalog.from_directory(tmp_path)

    assert len(catalog) == 2
    assert [d.name for d in catalog] == ["Echo", "List"]
    assert len(catalog.errors) == 1
    assert catalog.get("Echo") is catalog.get("echo")
    assert catalog.get("missing") is None


def test_catalog_keeps_first_on_duplicate_name() -> None:
    catalog = WorkflowCatalog()
    first = load_workflow("name: A\ncommand: one\n")
    catalog.add(first)
    catalog.add(load_workflow("name: A\ncommand: two\n"))

    assert catalog.get("A") is first


def test_catalog_from_missing_directory_is_empty(tmp_path: Path) -> None:
    assert len(WorkflowCatalog.from_directory(tmp_path / "absent")) == 0
