"""Ordered, conditional resolution of manifest variables.

Variables are resolved once, in declaration order.  Each one may read the
values resolved before it: its ``only_if`` gate is checked against them and
a string default containing placeholders is rendered with them.  A variable
whose gate fails is left out of the mapping entirely, which in turn fails
the gate of anything depending on it.
"""

from __future__ import annotations

from collections.abc import Mapping

from kickstart.errors import InvalidManifestError
from kickstart.manifest.models import Manifest, ResolvedVariables, Variable, value_type
from kickstart.resolver.sources import DefaultsSource, OverridesSource, ValueSource
from kickstart.scaffolder.templates import TemplateRenderer, has_placeholders


class VariableResolver:
    """Resolve every variable of a manifest through a ``ValueSource``."""

    def __init__(
        self,
        manifest: Manifest,
        source: ValueSource | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.manifest = manifest
        self.source = source or DefaultsSource()
        self.renderer = renderer or TemplateRenderer()

    def default_for(
        self, variable: Variable, values: Mapping[str, bool | int | str]
    ) -> bool | int | str:
        """Return the concrete default of *variable* given the values resolved so far.

        Raises:
            InvalidManifestError: If the default is not a string, integer or bool.
            RenderError: If a templated string default fails to render.
        """
        try:
            value_type(variable.default)
        except TypeError as err:
            raise InvalidManifestError(
                f"Variable `{variable.name}` has an unsupported default: {err}"
            ) from err

        default = variable.default
        if isinstance(default, str) and has_placeholders(default):
            return self.renderer.render_string(default, values)
        return default

    def resolve(self) -> ResolvedVariables:
        """Walk the variables in order and build the name -> value mapping.

        Raises:
            InvalidVariableNameError: If an override names an undeclared variable.
            InvalidInputError: If an override is not a valid value.
            UnreadableInputError: If the interactive input cannot be read.
        """
        if isinstance(self.source, OverridesSource):
            self.source.check_names(self.manifest)

        values: ResolvedVariables = {}
        for variable in self.manifest.variables:
            if variable.only_if is not None and not variable.only_if.is_satisfied(values):
                continue
            default = self.default_for(variable, values)
            values[variable.name] = self.source.acquire(variable, default)
        return values


def default_values(
    manifest: Manifest, renderer: TemplateRenderer | None = None
) -> ResolvedVariables:
    """Resolve the manifest using only defaults, still honouring gates and templated defaults."""
    return VariableResolver(manifest, DefaultsSource(), renderer).resolve()
