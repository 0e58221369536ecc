"""Pre- and post-generation hooks.

A hook is an executable file of the template.  Before running, it is
rendered with the resolved variables and written to the generation run's
scratch directory, so the template itself is never modified and the staged
copy disappears with the run.
"""

from __future__ import annotations

import os
import stat
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from kickstart.errors import FilesystemError, HookError
from kickstart.manifest.models import Hook, normalize_relative_path
from kickstart.scaffolder.templates import TemplateRenderer
from kickstart.utils import read_bytes, run_command, write_bytes

_EXECUTABLE = stat.S_IRWXU | stat.S_IRGRP | stat.S_IXGRP | stat.S_IROTH | stat.S_IXOTH


@dataclass(frozen=True)
class HookFile:
    """A hook after templating."""

    hook: Hook
    path: Path

    @property
    def name(self) -> str:
        return self.hook.name

    @property
    def original_path(self) -> str:
        """The hook path inside the template."""
        return normalize_relative_path(self.hook.path)


class HookRunner:
    """Stage and execute hooks.

    Args:
        template_root: Directory the hook paths are relative to.
        scratch_dir: Private directory of the generation run; staged hooks
            are written there.
        renderer: Template engine used to render the hook sources.
        timeout: Optional per-hook timeout in seconds.
    """

    def __init__(
        self,
        template_root: str | Path,
        scratch_dir: str | Path,
        renderer: TemplateRenderer | None = None,
        timeout: float | None = None,
    ) -> None:
        self.template_root = Path(template_root)
        self.scratch_dir = Path(scratch_dir)
        self.renderer = renderer or TemplateRenderer()
        self.timeout = timeout
        self._staged = 0

    def stage(
        self, hooks: Sequence[Hook], variables: Mapping[str, bool | int | str]
    ) -> list[HookFile]:
        """Render every hook whose gate passes into the scratch directory.

        Raises:
            RenderError: If a hook fails to render (tagged with its path).
            HookError: If a hook is not a text file.
            FilesystemError: If a hook cannot be read or written.
        """
        staged: list[HookFile] = []
        for hook in hooks:
            if hook.only_if is not None and not hook.only_if.is_satisfied(variables):
                continue

            relative = normalize_relative_path(hook.path)
            source = self.template_root / relative
            try:
                text = read_bytes(source).decode("utf-8")
            except UnicodeDecodeError as err:
                raise HookError(hook.name, f"Hook `{hook.name}` is not a UTF-8 text file: {source}") from err

            rendered = self.renderer.render_string(text, variables, path=relative)

            self._staged += 1
            target = self.scratch_dir / f"{self._staged:02d}-{PurePosixPath(relative).name}"
            write_bytes(target, rendered.encode("utf-8"))
            try:
                os.chmod(target, _EXECUTABLE)
            except OSError as err:
                raise FilesystemError(f"Could not make hook executable ({err.strerror or err})", target) from err
            staged.append(HookFile(hook=hook, path=target))
        return staged

    async def execute(self, hook_file: HookFile, cwd: str | Path | None = None) -> None:
        """Run one staged hook.

        The hook runs in *cwd* when that directory exists and inherits the
        parent's stdout and stderr.

        Raises:
            HookError: If the hook cannot be spawned or exits with a non-zero code.
        """
        workdir = Path(cwd) if cwd is not None and Path(cwd).is_dir() else None
        try:
            returncode, _, stderr = await run_command(
                [str(hook_file.path)], cwd=workdir, timeout=self.timeout, capture=False
            )
        except OSError as err:
            raise HookError(hook_file.name, f"Hook `{hook_file.name}` could not be executed") from err

        if returncode == -1 and stderr:
            raise HookError(hook_file.name, f"Hook `{hook_file.name}` failed: {stderr}", returncode)
        if returncode != 0:
            raise HookError(
                hook_file.name,
                f"Hook `{hook_file.name}` exited with a non 0 code ({returncode})",
                returncode,
            )

    async def run(
        self,
        hooks: Sequence[Hook],
        variables: Mapping[str, bool | int | str],
        cwd: str | Path | None = None,
    ) -> list[HookFile]:
        """Stage then execute *hooks* in order, stopping at the first failure."""
        staged = self.stage(hooks, variables)
        for hook_file in staged:
            await self.execute(hook_file, cwd)
        return staged
