"""Pydantic v2 models for ``template.toml``.

Defines the manifest hierarchy: the template metadata, its ordered list of
variables, hooks, and cleanup rules.  Scalar values are restricted to the
closed set string / integer / boolean; any other TOML type is rejected when
the manifest is loaded.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import PurePosixPath
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, field_validator

# Bool must come first: a Python ``bool`` is also an ``int``.
ScalarValue = Union[StrictBool, StrictInt, StrictStr]

ResolvedVariables = dict[str, Union[bool, int, str]]

SUPPORTED_KICKSTART_VERSIONS: tuple[int, ...] = (1,)


# ---------------------------------------------------------------------------
# Scalar helpers
# ---------------------------------------------------------------------------


def value_type(value: bool | int | str) -> str:
    """Return the manifest type name of a scalar: ``string``, ``integer`` or ``bool``."""
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, str):
        return "string"
    raise TypeError(
        f"Value {value!r} (of type `{type(value).__name__}`) is not allowed as a value: "
        "only strings, integers and boolean are."
    )


def values_equal(left: bool | int | str, right: bool | int | str) -> bool:
    """Compare two scalars by type *and* value, so ``True`` never equals ``1``."""
    return type(left) is type(right) and left == right


def format_value(value: bool | int | str) -> str:
    """Render a scalar the way it is written in messages and prompts."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def normalize_relative_path(path: str) -> str:
    """Normalise a template-relative path to posix form (``./a\\b`` -> ``a/b``)."""
    return PurePosixPath(path.replace("\\", "/")).as_posix()


# ---------------------------------------------------------------------------
# Manifest building blocks
# ---------------------------------------------------------------------------


class Condition(BaseModel):
    """A gate: only applies when variable ``name`` resolved to ``value``."""

    name: str
    value: ScalarValue

    def is_satisfied(self, values: Mapping[str, bool | int | str]) -> bool:
        """A variable missing from *values* was never asked, so the gate fails."""
        if self.name not in values:
            return False
        return values_equal(values[self.name], self.value)


class Cleanup(BaseModel):
    """Paths to delete from the output when ``name`` has ``value``."""

    name: str
    value: ScalarValue
    paths: list[str] = Field(default_factory=list)


class Variable(BaseModel):
    """A question loaded from the manifest."""

    name: str = Field(..., description="The variable name in the final context")
    default: ScalarValue = Field(..., description="A default value is required")
    prompt: str = Field(..., description="The text asked to the user")
    choices: Optional[list[ScalarValue]] = Field(default=None)
    validation: Optional[str] = Field(default=None, description="Regex the value must match")
    only_if: Optional[Condition] = Field(default=None)

    @property
    def type_name(self) -> str:
        return value_type(self.default)


class Hook(BaseModel):
    """An executable run before or after generation."""

    name: str = Field(..., description="The display name for that hook")
    path: str = Field(..., description="Path to the executable, relative to the template root")
    only_if: Optional[Condition] = Field(default=None)


class Manifest(BaseModel):
    """The full template definition loaded from ``template.toml``."""

    model_config = ConfigDict(extra="forbid")

    name: str
    description: Optional[str] = None
    version: Optional[str] = None
    kickstart_version: StrictInt
    url: Optional[str] = None
    authors: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    directory: Optional[str] = Field(
        default=None,
        description="Sub-directory holding the files to render; useful when the "
        "template repository has its own docs, README or CI",
    )
    ignore: list[str] = Field(default_factory=list)
    cleanup: list[Cleanup] = Field(default_factory=list)
    copy_without_render: list[str] = Field(default_factory=list)
    pre_gen_hooks: list[Hook] = Field(default_factory=list)
    post_gen_hooks: list[Hook] = Field(default_factory=list)
    variables: list[Variable]

    @field_validator("kickstart_version")
    @classmethod
    def _check_kickstart_version(cls, value: int) -> int:
        if value not in SUPPORTED_KICKSTART_VERSIONS:
            supported = ", ".join(str(v) for v in SUPPORTED_KICKSTART_VERSIONS)
            raise ValueError(f"unsupported kickstart_version {value} (supported: {supported})")
        return value

    def all_hook_paths(self) -> list[str]:
        """Template-relative paths of every pre- and post-generation hook."""
        return [
            normalize_relative_path(hook.path)
            for hook in (*self.pre_gen_hooks, *self.post_gen_hooks)
        ]

    def get_variable(self, name: str) -> Variable | None:
        for variable in self.variables:
            if variable.name == name:
                return variable
        return None
