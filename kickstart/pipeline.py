"""kickstart pipeline orchestrator and command line entry point.

Runs one generation end to end:

Step 1: LOAD      -- Locate the template (local folder or git remote), parse template.toml.
Step 2: RESOLVE   -- Ask for (or default, or override) every variable, in order.
Step 3: PRE-GEN   -- Stage and run the pre-generation hooks.
Step 4: GENERATE  -- Render the tree into the output directory, then apply cleanup.
Step 5: POST-GEN  -- Stage and run the post-generation hooks.

The first failure stops the run: a failing pre-gen hook means nothing is
generated, a failing generation means no post-gen hook runs.

Usage::

    kickstart path/to/template -o ./my-project
    kickstart https://github.com/user/template --no-input --set project_name=demo
    kickstart validate path/to/template.toml
"""

from __future__ import annotations

import asyncio
import sys
import time
from pathlib import Path

from rich.markup import escape

from kickstart.config import Config
from kickstart.errors import KickstartError, iter_causes
from kickstart.manifest import validate_file
from kickstart.resolver import DefaultsSource, InteractiveSource, OverridesSource, ValueSource
from kickstart.scaffolder import GenerationResult
from kickstart.template import Template
from kickstart.utils import (
    console,
    format_duration,
    print_error,
    print_phase_header,
    print_success,
    print_summary_table,
    print_warning,
)

# ---------------------------------------------------------------------------
# Pipeline Orchestrator
# ---------------------------------------------------------------------------


class Pipeline:
    """Drive a generation from a template source to a finished project.

    Attributes:
        config: Run-level settings.
        source: Where variable values come from.  Derived from the config when
            not given: overrides first, then defaults (``no_input``) or the
            interactive prompt.
    """

    def __init__(self, config: Config, source: ValueSource | None = None) -> None:
        self.config = config
        self.source = source or self._default_source()

    def _default_source(self) -> ValueSource:
        fallback: ValueSource
        if self.config.no_input:
            fallback = DefaultsSource()
        else:
            fallback = InteractiveSource(console=console)
        if self.config.overrides:
            return OverridesSource(self.config.overrides, fallback=fallback)
        return fallback

    async def run(self, template_source: str) -> GenerationResult:
        """Run every step for *template_source* and return what was generated.

        Raises:
            KickstartError: The first fatal error of any step.
        """
        started = time.monotonic()
        output_dir = Path(self.config.output_dir)

        template = await Template.from_input(
            template_source,
            self.config.directory,
            manifest_filename=self.config.manifest_filename,
            hook_timeout=self.config.hook_timeout,
        )
        with template:
            console.print(f"Using template [bold]{escape(template.manifest.name)}[/bold]")
            if template.manifest.description:
                console.print(f"[dim]{escape(template.manifest.description)}[/dim]")

            template.resolve(self.source)

            hook_count = len(template.manifest.pre_gen_hooks) + len(template.manifest.post_gen_hooks)
            if not self.config.run_hooks and hook_count:
                print_warning(f"Skipping {hook_count} hook(s) of the template")

            if self.config.run_hooks:
                pre_gen_hooks = template.get_pre_gen_hooks()
                if pre_gen_hooks:
                    print_phase_header("Running pre-gen hooks")
                    for hook_file in pre_gen_hooks:
                        console.print(f"  - {hook_file.name}")
                    await template.run_hooks(pre_gen_hooks, output_dir)

            result = await template.generate(output_dir)

            if self.config.run_hooks:
                post_gen_hooks = template.get_post_gen_hooks()
                if post_gen_hooks:
                    print_phase_header("Running post-gen hooks")
                    for hook_file in post_gen_hooks:
                        console.print(f"  - {hook_file.name}")
                    await template.run_hooks(post_gen_hooks, result.output_dir)

        print_summary_table(
            {
                "Output": str(result.output_dir),
                "Rendered files": str(len(result.rendered)),
                "Copied files": str(len(result.copied)),
                "Cleaned up": str(len(result.deleted)),
                "Duration": format_duration(time.monotonic() - started),
            },
            title="Generation",
        )
        return result


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def bail(error: BaseException) -> None:
    """Print *error* and its causes, then exit with status 1."""
    print_error(f"Error: {error}")
    for cause in iter_causes(error):
        print_error(f"Reason: {cause}")
    sys.exit(1)


def _parse_overrides(pairs: list[str]) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"Invalid --set value {pair!r}, expected NAME=VALUE")
        overrides[name.strip()] = value
    return overrides


def run_validate(path: str) -> int:
    """``kickstart validate``: report every issue of a template.toml."""
    try:
        issues = validate_file(path)
    except KickstartError as err:
        bail(err)
        return 1

    if issues:
        print_error("The template.toml is invalid:")
        for issue in issues:
            print_error(f"- {issue}")
        return 1
    print_success("The template.toml file is valid!")
    return 0


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``kickstart`` / ``python -m kickstart.pipeline``."""
    import argparse

    args_list = list(sys.argv[1:] if argv is None else argv)

    if args_list and args_list[0] == "validate":
        validate_parser = argparse.ArgumentParser(
            prog="kickstart validate",
            description="Validate that a template.toml is valid",
        )
        validate_parser.add_argument("path", help="Path to the template.toml")
        validate_args = validate_parser.parse_args(args_list[1:])
        sys.exit(run_validate(validate_args.path))

    parser = argparse.ArgumentParser(
        prog="kickstart",
        description="Scaffold a project from a template",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  kickstart ./my-template -o ./my-project\n"
            "  kickstart https://github.com/user/template --no-input\n"
            "  kickstart ./my-template --set project_name=demo --set use_docker=no\n"
            "  kickstart validate ./my-template/template.toml\n"
        ),
    )
    parser.add_argument(
        "template",
        help="Template to use: a local path or a URL pointing to a git repository",
    )
    parser.add_argument(
        "--output-dir", "-o",
        default=None,
        help="Where to output the project (default: current directory)",
    )
    parser.add_argument(
        "--directory", "-d",
        default=None,
        help="Sub-directory of the folder/repository that holds template.toml",
    )
    parser.add_argument(
        "--no-input",
        action="store_true",
        default=None,
        help="Do not prompt for variables and only use the defaults from template.toml",
    )
    parser.add_argument(
        "--no-hooks",
        action="store_true",
        help="Do not run the pre/post generation hooks",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Set a variable instead of asking for it (repeatable)",
    )

    args = parser.parse_args(args_list)

    try:
        overrides = _parse_overrides(args.overrides)
    except ValueError as err:
        parser.error(str(err))

    settings: dict[str, object] = {"overrides": overrides}
    if args.output_dir is not None:
        settings["output_dir"] = Path(args.output_dir)
    if args.directory is not None:
        settings["directory"] = args.directory
    if args.no_input:
        settings["no_input"] = True
    if args.no_hooks:
        settings["run_hooks"] = False

    try:
        config = Config.from_env(**settings)
    except ValueError as err:
        parser.error(str(err))

    pipeline = Pipeline(config)
    try:
        asyncio.run(pipeline.run(args.template))
    except KickstartError as err:
        bail(err)

    print_success("Everything done, ready to go!")


if __name__ == "__main__":
    main()
