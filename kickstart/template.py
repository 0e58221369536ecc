"""A loaded template and the state of one generation run.

``Template`` ties the pieces together: it locates and parses the manifest,
holds the resolved variables, owns the scratch directory hooks are staged
in, and drives the generator.  Use it as a context manager so the scratch
directory (and a cloned repository, if any) is removed on every exit path::

    with Template.from_local("path/to/template") as template:
        template.set_variables(template.default_values())
        await template.generate("output")
"""

from __future__ import annotations

import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import TracebackType

from kickstart.config import MANIFEST_FILENAME
from kickstart.errors import InvalidVariableNameError, KickstartError, TemplateSourceError
from kickstart.manifest import Manifest, ResolvedVariables, Variable, load_manifest_file, validate_manifest
from kickstart.resolver import DefaultsSource, ValueSource, VariableResolver
from kickstart.scaffolder import GenerationResult, HookFile, HookRunner, ProjectGenerator, TemplateRenderer
from kickstart.utils import run_command


class SourceKind(str, Enum):
    """Where a template comes from."""

    LOCAL = "local"
    GIT = "git"


@dataclass(frozen=True)
class TemplateSource:
    kind: SourceKind
    location: str


def get_source(value: str) -> TemplateSource:
    """An existing directory is a local template; anything else is a git remote."""
    if Path(value).is_dir():
        return TemplateSource(SourceKind.LOCAL, value)
    return TemplateSource(SourceKind.GIT, value)


class Template:
    """The template being generated.

    Attributes:
        path: Directory containing ``template.toml``.
        manifest: The parsed manifest, immutable for the run.
        variables: The resolved variables, empty until resolution or
            ``set_variables``.
    """

    def __init__(
        self,
        path: str | Path,
        manifest: Manifest,
        renderer: TemplateRenderer | None = None,
        manifest_filename: str = MANIFEST_FILENAME,
        hook_timeout: float | None = None,
    ) -> None:
        self.path = Path(path)
        self.manifest = manifest
        self.manifest_filename = manifest_filename
        self.renderer = renderer or TemplateRenderer()
        self.variables: ResolvedVariables = {}
        self._scratch = tempfile.TemporaryDirectory(prefix="kickstart-hooks-")
        self._clone: tempfile.TemporaryDirectory[str] | None = None
        self.hooks = HookRunner(self.path, self._scratch.name, self.renderer, timeout=hook_timeout)

    # -- Loading -----------------------------------------------------------

    @classmethod
    def from_local(
        cls,
        path: str | Path,
        directory: str | None = None,
        manifest_filename: str = MANIFEST_FILENAME,
        hook_timeout: float | None = None,
    ) -> "Template":
        """Load a template from a local folder.

        Args:
            path: The template folder.
            directory: Sub-folder of *path* holding ``template.toml``.

        Raises:
            MissingManifestError: If there is no manifest.
            ManifestParseError: If the manifest cannot be deserialized.
        """
        root = Path(path)
        if directory:
            root = root / directory
        manifest = load_manifest_file(root / manifest_filename)
        return cls(root, manifest, manifest_filename=manifest_filename, hook_timeout=hook_timeout)

    @classmethod
    async def from_git(
        cls,
        remote: str,
        directory: str | None = None,
        manifest_filename: str = MANIFEST_FILENAME,
        hook_timeout: float | None = None,
    ) -> "Template":
        """Clone *remote* into a temporary folder and load it.

        The clone belongs to the returned template and is removed by ``close``.

        Raises:
            TemplateSourceError: If the clone fails.
        """
        clone = tempfile.TemporaryDirectory(prefix="kickstart-clone-")
        name = remote.rstrip("/").split("/")[-1].removesuffix(".git") or "template"
        target = Path(clone.name) / name
        try:
            try:
                returncode, _, stderr = await run_command(
                    ["git", "clone", "--recurse-submodules", remote, str(target)]
                )
            except OSError as err:
                raise TemplateSourceError(remote, "Could not run git to clone the repository") from err
            if returncode != 0:
                raise TemplateSourceError(remote, f"Could not clone the repository {remote}: {stderr}")
            template = cls.from_local(target, directory, manifest_filename, hook_timeout)
        except KickstartError:
            clone.cleanup()
            raise
        template._clone = clone
        return template

    @classmethod
    async def from_input(
        cls,
        value: str,
        directory: str | None = None,
        manifest_filename: str = MANIFEST_FILENAME,
        hook_timeout: float | None = None,
    ) -> "Template":
        """Load a template from a local path or a git remote."""
        source = get_source(value)
        if source.kind is SourceKind.GIT:
            return await cls.from_git(source.location, directory, manifest_filename, hook_timeout)
        return cls.from_local(source.location, directory, manifest_filename, hook_timeout)

    # -- Lifecycle ---------------------------------------------------------

    def close(self) -> None:
        """Remove the hook scratch directory and any cloned repository."""
        self._scratch.cleanup()
        if self._clone is not None:
            self._clone.cleanup()
            self._clone = None

    def __enter__(self) -> "Template":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def scratch_dir(self) -> Path:
        return Path(self._scratch.name)

    # -- Variables ---------------------------------------------------------

    def validate(self) -> list[str]:
        """Validate the manifest, with hook paths checked against this template."""
        return validate_manifest(self.manifest, self.path)

    def get_variable_by_name(self, name: str) -> Variable:
        variable = self.manifest.get_variable(name)
        if variable is None:
            raise InvalidVariableNameError(name)
        return variable

    def get_default_for(self, name: str, values: ResolvedVariables) -> bool | int | str:
        """The default of *name*, rendered with *values* when it is a templated string."""
        variable = self.get_variable_by_name(name)
        return VariableResolver(self.manifest, renderer=self.renderer).default_for(variable, values)

    def insert_variable(self, name: str, value: bool | int | str) -> None:
        self.get_variable_by_name(name)
        self.variables[name] = value

    def set_variables(self, variables: ResolvedVariables) -> None:
        """Replace the variables wholesale.

        Raises:
            InvalidVariableNameError: If a name is not declared by the manifest.
        """
        self.variables = {}
        for name, value in variables.items():
            self.insert_variable(name, value)

    def should_ask_variable(self, name: str) -> bool:
        """Whether *name*'s gate passes against the variables set so far."""
        variable = self.get_variable_by_name(name)
        if variable.only_if is None:
            return True
        return variable.only_if.is_satisfied(self.variables)

    def default_values(self) -> ResolvedVariables:
        """Resolve every variable from its default, without prompting."""
        return VariableResolver(self.manifest, DefaultsSource(), self.renderer).resolve()

    def resolve(self, source: ValueSource) -> ResolvedVariables:
        """Resolve the variables through *source* and keep them on the template."""
        self.set_variables(VariableResolver(self.manifest, source, self.renderer).resolve())
        return dict(self.variables)

    # -- Hooks -------------------------------------------------------------

    def get_pre_gen_hooks(self) -> list[HookFile]:
        """Stage the pre-gen hooks whose gate passes; paths point to the rendered copies."""
        return self.hooks.stage(self.manifest.pre_gen_hooks, self.variables)

    def get_post_gen_hooks(self) -> list[HookFile]:
        """Stage the post-gen hooks whose gate passes; paths point to the rendered copies."""
        return self.hooks.stage(self.manifest.post_gen_hooks, self.variables)

    async def run_hooks(self, hook_files: list[HookFile], output_dir: str | Path) -> None:
        """Execute staged hooks in order; the first failure raises ``HookError``."""
        for hook_file in hook_files:
            await self.hooks.execute(hook_file, output_dir)

    # -- Generation --------------------------------------------------------

    async def generate(self, output_dir: str | Path) -> GenerationResult:
        """Render the template into *output_dir*, cleanup included."""
        generator = ProjectGenerator(
            self.manifest,
            self.path,
            self.variables,
            renderer=self.renderer,
            manifest_filename=self.manifest_filename,
        )
        return await generator.generate(output_dir)
