"""Turning raw text into variable values.

Each ``interpret_*`` function takes what the user typed (or what was passed
with ``--set``) and returns a typed value, or raises ``InvalidInputError``.
Empty input always selects the default.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from kickstart.errors import InvalidInputError, InvalidManifestError
from kickstart.manifest.models import Variable, format_value, value_type, values_equal

_TRUE_INPUTS = {"y", "yes", "true"}
_FALSE_INPUTS = {"n", "no", "false"}


def _search(pattern: str, value: str) -> re.Match[str] | None:
    try:
        return re.search(pattern, value)
    except re.error as err:
        raise InvalidManifestError(f"Invalid validation regex `{pattern}`: {err}") from err


def interpret_bool(raw: str, default: bool) -> bool:
    """Interpret a yes/no answer."""
    answer = raw.strip().lower()
    if not answer:
        return default
    if answer in _TRUE_INPUTS:
        return True
    if answer in _FALSE_INPUTS:
        return False
    raise InvalidInputError(f"Invalid choice: '{raw}'")


def interpret_string(raw: str, default: str, validation: str | None = None) -> str:
    """Interpret free text, checking it against the optional validation regex."""
    if raw == "":
        return default
    if validation is not None and _search(validation, raw) is None:
        raise InvalidInputError(f"The value needs to pass the regex: {validation}")
    return raw


def interpret_integer(raw: str, default: int) -> int:
    """Interpret a base-10 integer."""
    text = raw.strip()
    if not text:
        return default
    try:
        return int(text, 10)
    except ValueError:
        raise InvalidInputError(f"Invalid integer: '{raw}'") from None


def interpret_choices(
    raw: str, default: bool | int | str, choices: Sequence[bool | int | str]
) -> bool | int | str:
    """Interpret a 1-based index into *choices*."""
    text = raw.strip()
    if not text:
        return default
    try:
        index = int(text, 10)
    except ValueError:
        raise InvalidInputError(f"Invalid choice: '{raw}'") from None
    if index < 1 or index > len(choices):
        raise InvalidInputError(f"Invalid choice: '{raw}'")
    return choices[index - 1]


def check_value(variable: Variable, value: bool | int | str) -> bool | int | str:
    """Validate an already typed value for *variable*.

    The value must have the default's type, belong to the choices when there
    are any, and pass the validation regex when it is a string.

    Raises:
        InvalidInputError: If any of those checks fails.
    """
    expected = value_type(variable.default)
    try:
        actual = value_type(value)
    except TypeError as err:
        raise InvalidInputError(str(err), variable.name) from None
    if actual != expected:
        raise InvalidInputError(
            f"Variable `{variable.name}` expects a {expected}, got {actual} `{format_value(value)}`",
            variable.name,
        )
    if variable.choices is not None and not any(values_equal(value, c) for c in variable.choices):
        options = ", ".join(format_value(c) for c in variable.choices)
        raise InvalidInputError(
            f"Variable `{variable.name}` must be one of: {options} (got `{format_value(value)}`)",
            variable.name,
        )
    if isinstance(value, str) and variable.validation is not None:
        if _search(variable.validation, value) is None:
            raise InvalidInputError(
                f"Variable `{variable.name}`: the value needs to pass the regex: {variable.validation}",
                variable.name,
            )
    return value


def parse_value(variable: Variable, raw: str) -> bool | int | str:
    """Interpret *raw* according to the type of *variable*'s default.

    For variables with choices the raw text is compared to the rendered
    choices (``--set db=mysql``); an exact textual match wins.
    """
    if variable.choices is not None:
        for choice in variable.choices:
            if format_value(choice) == raw:
                return choice
    default = variable.default
    if isinstance(default, bool):
        value: bool | int | str = interpret_bool(raw, default)
    elif isinstance(default, int):
        value = interpret_integer(raw, default)
    else:
        value = raw
    return check_value(variable, value)
