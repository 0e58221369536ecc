"""kickstart scaffolder -- renders a template tree into a project.

This module takes a manifest, the directory it lives in, and the resolved
variables, and produces the output project: paths and text files are
rendered with Jinja2, binary files are copied, hooks are staged and run
around the generation, and cleanup rules prune the result.

Quick usage::

    from kickstart.scaffolder import ProjectGenerator

    generator = ProjectGenerator(manifest, "/path/to/template", variables)
    result = await generator.generate("/tmp/output")
"""

from kickstart.scaffolder.cleanup import apply_cleanup
from kickstart.scaffolder.generator import GenerationResult, ProjectGenerator, TemplateEntry
from kickstart.scaffolder.hooks import HookFile, HookRunner
from kickstart.scaffolder.templates import TemplateRenderer, has_placeholders

__all__ = [
    "GenerationResult",
    "HookFile",
    "HookRunner",
    "ProjectGenerator",
    "TemplateEntry",
    "TemplateRenderer",
    "apply_cleanup",
    "has_placeholders",
]
