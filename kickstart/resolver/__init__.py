"""Variable resolution: turning a manifest's variables into template context.

Quick usage::

    from kickstart.resolver import InteractiveSource, VariableResolver

    values = VariableResolver(manifest, InteractiveSource()).resolve()
"""

from kickstart.resolver.interpret import (
    check_value,
    interpret_bool,
    interpret_choices,
    interpret_integer,
    interpret_string,
    parse_value,
)
from kickstart.resolver.resolver import VariableResolver, default_values
from kickstart.resolver.sources import DefaultsSource, InteractiveSource, OverridesSource, ValueSource

__all__ = [
    "DefaultsSource",
    "InteractiveSource",
    "OverridesSource",
    "ValueSource",
    "VariableResolver",
    "check_value",
    "default_values",
    "interpret_bool",
    "interpret_choices",
    "interpret_integer",
    "interpret_string",
    "parse_value",
]
