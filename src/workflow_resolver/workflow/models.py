"""Workflow definition models.

A workflow is parsed once and then shared read-only by every session that
resolves it, so all models here are frozen.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_core import PydanticCustomError

NO_VALUE_MARKER = "~"

EnumSource = Literal["static", "dynamic"]


class ArgumentType(str, Enum):
    TEXT = "Text"
    NUMBER = "Number"
    BOOLEAN = "Boolean"
    ENUM = "Enum"


def _scalar_to_str(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float):
        return str(value)
    return value


class ArgumentSpec(BaseModel):
    """A named, typed parameter of a workflow.

    For ``Enum`` arguments exactly one option source must be given: either
    ``enum_variants`` (a static list) or ``enum_command`` (a shell command whose
    output lines become the options).
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(min_length=1)
    arg_type: ArgumentType = ArgumentType.TEXT
    description: str = ""
    default_value: str | None = None

    enum_name: str | None = None
    enum_command: str | None = None
    enum_variants: tuple[str, ...] | None = None
    dynamic_resolution: str | None = None

    @field_validator("name", mode="after")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("argument name must not be blank")
        return value

    @field_validator("description", mode="before")
    @classmethod
    def _description_or_empty(cls, value: Any) -> Any:
        if value is None or value == NO_VALUE_MARKER:
            return ""
        return value

    @field_validator("default_value", mode="before")
    @classmethod
    def _normalise_default(cls, value: Any) -> Any:
        if value is None or value == NO_VALUE_MARKER:
            return None
        return _scalar_to_str(value)

    @field_validator("enum_variants", mode="before")
    @classmethod
    def _stringify_variants(cls, value: Any) -> Any:
        if isinstance(value, list | tuple):
            return tuple(_scalar_to_str(v) for v in value)
        return value

    @model_validator(mode="after")
    def _check_enum_source(self) -> ArgumentSpec:
        if self.arg_type is not ArgumentType.ENUM:
            return self
        if self.enum_variants is not None and self.enum_command:
            raise ValueError("Enum argument must set only one of enum_variants or enum_command")
        if self.enum_variants is None and not self.enum_command:
            raise ValueError("Enum argument needs enum_variants or enum_command")
        if self.enum_variants is not None and not self.enum_variants:
            raise ValueError("enum_variants must not be empty")
        return self

    @property
    def has_default(self) -> bool:
        return self.default_value is not None

    @property
    def enum_source(self) -> EnumSource | None:
        if self.arg_type is not ArgumentType.ENUM:
            return None
        return "static" if self.enum_variants is not None else "dynamic"

    @property
    def prompt_label(self) -> str:
        return self.description or self.name


class WorkflowDefinition(BaseModel):
    """A parsed workflow: command template plus ordered argument specs."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(min_length=1)
    command: str
    description: str = ""
    arguments: tuple[ArgumentSpec, ...] = ()
    tags: tuple[str, ...] = ()
    shells: tuple[str, ...] = ()

    source_url: str | None = None
    author: str | None = None
    author_url: str | None = None

    @field_validator("arguments", "tags", "shells", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return () if value is None else value

    @field_validator("description", mode="before")
    @classmethod
    def _description_or_empty(cls, value: Any) -> Any:
        if value is None or value == NO_VALUE_MARKER:
            return ""
        return value

    @model_validator(mode="after")
    def _unique_argument_names(self) -> WorkflowDefinition:
        seen: set[str] = set()
        for index, argument in enumerate(self.arguments):
            if argument.name in seen:
                raise PydanticCustomError(
                    "duplicate_argument_name",
                    "duplicate argument name '{name}'",
                    {"name": argument.name, "index": index},
                )
            seen.add(argument.name)
        return self

    @property
    def argument_names(self) -> list[str]:
        return [a.name for a in self.arguments]

    def __str__(self) -> str:
        return self.name
