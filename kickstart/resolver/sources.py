"""Where variable values come from.

A ``ValueSource`` is handed each variable that passed its gate, along with
its concrete default, and returns the value to use.  Three sources exist:

* ``DefaultsSource`` accepts every default (``--no-input``).
* ``OverridesSource`` uses values supplied up-front by a library caller or
  ``--set``; an invalid value is a hard failure.
* ``InteractiveSource`` asks the user, re-prompting until the answer is valid.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Protocol

from rich.console import Console
from rich.markup import escape

from kickstart.errors import InvalidInputError, InvalidVariableNameError, UnreadableInputError
from kickstart.manifest.models import Manifest, Variable, format_value, values_equal
from kickstart.resolver.interpret import (
    check_value,
    interpret_bool,
    interpret_choices,
    interpret_integer,
    interpret_string,
    parse_value,
)


class ValueSource(Protocol):
    """Strategy deciding the value of one variable."""

    def acquire(self, variable: Variable, default: bool | int | str) -> bool | int | str:
        ...


class DefaultsSource:
    """Use the (rendered) default of every variable."""

    def acquire(self, variable: Variable, default: bool | int | str) -> bool | int | str:
        return default


class OverridesSource:
    """Use caller-supplied values, falling back to another source.

    String overrides for integer or boolean variables are parsed the same way
    typed input would be; every override is checked against the variable's
    type, choices and validation regex.
    """

    def __init__(
        self,
        overrides: Mapping[str, bool | int | str],
        fallback: ValueSource | None = None,
    ) -> None:
        self.overrides = dict(overrides)
        self.fallback = fallback or DefaultsSource()

    def check_names(self, manifest: Manifest) -> None:
        """Raise ``InvalidVariableNameError`` for the first override the manifest does not declare."""
        declared = {variable.name for variable in manifest.variables}
        for name in self.overrides:
            if name not in declared:
                raise InvalidVariableNameError(name)

    def acquire(self, variable: Variable, default: bool | int | str) -> bool | int | str:
        if variable.name not in self.overrides:
            return self.fallback.acquire(variable, default)
        value = self.overrides[variable.name]
        if isinstance(value, str):
            return parse_value(variable, value)
        return check_value(variable, value)


class InteractiveSource:
    """Ask the user on the terminal.

    Args:
        read_line: Called with the prompt text, returns the answer.  Defaults
            to ``Console.input``; tests pass a scripted callable.
        console: Where questions and input errors are printed.
    """

    def __init__(
        self,
        read_line: Callable[[str], str] | None = None,
        console: Console | None = None,
    ) -> None:
        self.console = console or Console()
        self._read_line = read_line or self.console.input

    def acquire(self, variable: Variable, default: bool | int | str) -> bool | int | str:
        while True:
            if variable.choices is not None:
                prompt = self._choices_prompt(variable, default)
            elif isinstance(default, bool):
                hint = "[Y/n]" if default else "[y/N]"
                prompt = f"[bold]{escape(variable.prompt)}[/bold] [yellow]{escape(hint)}[/yellow]: "
            else:
                hint = f"[default: {format_value(default)}"
                if variable.validation is not None:
                    hint += f", validation: {variable.validation}"
                hint += "]"
                prompt = f"[bold]{escape(variable.prompt)}[/bold] [yellow]{escape(hint)}[/yellow]: "

            raw = self._read(prompt)
            try:
                return self._interpret(variable, default, raw)
            except InvalidInputError as err:
                self.console.print(f"[red]{escape(str(err))}[/red]")

    def _choices_prompt(self, variable: Variable, default: bool | int | str) -> str:
        assert variable.choices is not None
        self.console.print(f"[bold]{escape(variable.prompt)}:[/bold]")
        default_index = 1
        for index, choice in enumerate(variable.choices, start=1):
            self.console.print(f"  [bold]{index}. {escape(format_value(choice))}[/bold]")
            if values_equal(choice, default):
                default_index = index
        return (
            f"  > Choose from 1..{len(variable.choices)} "
            f"[yellow]{escape(f'[default: {default_index}]')}[/yellow]: "
        )

    def _read(self, prompt: str) -> str:
        try:
            return self._read_line(prompt)
        except (EOFError, OSError) as err:
            raise UnreadableInputError() from err

    @staticmethod
    def _interpret(variable: Variable, default: bool | int | str, raw: str) -> bool | int | str:
        if variable.choices is not None:
            return interpret_choices(raw, default, variable.choices)
        if isinstance(default, bool):
            return interpret_bool(raw, default)
        if isinstance(default, int):
            return interpret_integer(raw, default)
        return interpret_string(raw, default, variable.validation)
