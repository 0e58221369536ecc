"""kickstart -- scaffold projects from templates.

A template is a directory holding a ``template.toml`` manifest and files
whose paths and contents contain Jinja2 placeholders.  kickstart resolves
the manifest's variables (interactively, from defaults, or from overrides),
renders the tree into an output directory, runs the template's hooks around
the generation, and applies its cleanup rules.

Quick usage::

    from kickstart import Template

    with Template.from_local("path/to/template") as template:
        template.set_variables(template.default_values())
        await template.generate("/tmp/output")
"""

from kickstart.config import Config
from kickstart.errors import KickstartError
from kickstart.manifest import Manifest, Variable, load_manifest, validate_file, validate_manifest
from kickstart.pipeline import Pipeline
from kickstart.resolver import (
    DefaultsSource,
    InteractiveSource,
    OverridesSource,
    VariableResolver,
    default_values,
)
from kickstart.scaffolder import ProjectGenerator, TemplateRenderer
from kickstart.template import Template, get_source

__all__ = [
    "Config",
    "DefaultsSource",
    "InteractiveSource",
    "KickstartError",
    "Manifest",
    "OverridesSource",
    "Pipeline",
    "ProjectGenerator",
    "Template",
    "TemplateRenderer",
    "Variable",
    "VariableResolver",
    "default_values",
    "get_source",
    "load_manifest",
    "validate_file",
    "validate_manifest",
]
