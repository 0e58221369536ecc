"""Rendering a template tree into an output project.

Walks the template directory, renders every path and every text file holding
placeholders with the resolved variables, copies everything else verbatim
(binary, non-UTF-8, placeholder-free and ``copy_without_render`` files), and
finally applies the manifest's cleanup rules.
"""

from __future__ import annotations

import asyncio
import os
import re
import shutil
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path

from kickstart.config import MANIFEST_FILENAME
from kickstart.errors import FilesystemError, GlobPatternError
from kickstart.manifest.globs import InvalidPatternError, compile_glob, glob_matches
from kickstart.manifest.models import Manifest, normalize_relative_path
from kickstart.scaffolder.cleanup import apply_cleanup
from kickstart.scaffolder.templates import TemplateRenderer, has_placeholders
from kickstart.utils import (
    VCS_METADATA,
    canonicalize,
    copy_file,
    ensure_dir,
    is_binary,
    is_within,
    read_bytes,
    write_bytes,
)


@dataclass(frozen=True)
class TemplateEntry:
    """A file or directory of the template tree."""

    path: Path
    relative: str
    is_dir: bool


@dataclass
class GenerationResult:
    """What a generation produced."""

    output_dir: Path
    rendered: list[Path]
    copied: list[Path]
    directories: list[Path]
    deleted: list[Path]

    @property
    def files(self) -> list[Path]:
        return [*self.rendered, *self.copied]


# ---------------------------------------------------------------------------
# Main generator
# ---------------------------------------------------------------------------


class ProjectGenerator:
    """Materialise a template tree for one set of resolved variables.

    Args:
        manifest: The template's manifest.
        template_root: Directory holding ``template.toml``; entry paths are
            relative to it.
        variables: The resolved variables, read-only for the whole pass.
        renderer: Template engine; a fresh one is created when omitted.
    """

    def __init__(
        self,
        manifest: Manifest,
        template_root: str | Path,
        variables: Mapping[str, bool | int | str],
        renderer: TemplateRenderer | None = None,
        manifest_filename: str = MANIFEST_FILENAME,
    ) -> None:
        self.manifest = manifest
        self.template_root = canonicalize(template_root)
        self.variables = dict(variables)
        self.renderer = renderer or TemplateRenderer()
        self.manifest_path = self.template_root / manifest_filename

    # -- Public API --------------------------------------------------------

    async def generate(self, output_dir: str | Path) -> GenerationResult:
        """Render the template into *output_dir*, then run cleanup.

        The output directory is created when missing.

        Raises:
            GlobPatternError: If a copy_without_render pattern is malformed.
            RenderError: If a path or file fails to render.
            FilesystemError: On any I/O failure, or when *output_dir* is the
                template directory itself.
        """
        output_root = await asyncio.to_thread(_prepare_output_dir, Path(output_dir))
        patterns = self.compile_copy_patterns()
        result = GenerationResult(output_root, [], [], [], [])

        entries = await asyncio.to_thread(self.collect_entries, output_root)
        for entry in entries:
            await asyncio.to_thread(self._render_entry, entry, output_root, patterns, result)

        result.deleted = await asyncio.to_thread(
            apply_cleanup, self.manifest.cleanup, self.variables, output_root, self.renderer
        )
        return result

    def compile_copy_patterns(self) -> list[re.Pattern[str]]:
        """Render and compile the copy_without_render globs, failing on the first bad one."""
        compiled: list[re.Pattern[str]] = []
        for pattern in self.manifest.copy_without_render:
            rendered = self.renderer.render_string(pattern, self.variables)
            try:
                compiled.append(compile_glob(rendered))
            except InvalidPatternError as err:
                raise GlobPatternError(str(err), pattern, rendered) from err
        return compiled

    @property
    def start_path(self) -> Path:
        """Where the walk starts: the manifest's ``directory`` or the template root."""
        if self.manifest.directory:
            return self.template_root / self.manifest.directory
        return self.template_root

    def iter_entries(self, output_root: Path) -> Iterator[TemplateEntry]:
        """Yield the template entries to render, in lexicographic order.

        Skipped, in this order: version-control metadata, anything inside the
        output directory when the output is nested in the template, the
        manifest file, ``ignore`` matches, and hook files.

        Raises:
            FilesystemError: If *output_root* is the walked directory itself.
        """
        start = canonicalize(self.start_path)
        if output_root == start:
            raise FilesystemError("The output directory cannot be the template directory", output_root)
        # Only an output nested in the template can be reached by the walk
        nested_output = output_root if is_within(output_root, start) else None

        ignore_rules = [normalize_relative_path(rule) for rule in self.manifest.ignore]
        hook_paths = set(self.manifest.all_hook_paths())
        yield from self._walk(self.start_path, nested_output, ignore_rules, hook_paths)

    def collect_entries(self, output_root: Path) -> list[TemplateEntry]:
        return list(self.iter_entries(output_root))

    # -- Internal helpers --------------------------------------------------

    def _walk(
        self,
        directory: Path,
        nested_output: Path | None,
        ignore_rules: list[str],
        hook_paths: set[str],
    ) -> Iterator[TemplateEntry]:
        try:
            with os.scandir(directory) as scanner:
                entries = sorted(scanner, key=lambda item: item.name)
        except OSError as err:
            raise FilesystemError(f"Could not list directory ({err.strerror or err})", directory) from err

        for item in entries:
            path = Path(item.path)
            is_dir = item.is_dir()
            # submodules carry a `.git` file rather than a directory
            if item.name in VCS_METADATA:
                continue
            if nested_output is not None and is_within(canonicalize(path), nested_output):
                continue
            if path == self.manifest_path:
                continue

            relative = Path(os.path.relpath(path, self.template_root)).as_posix()
            if any(relative == rule or relative.startswith(rule) for rule in ignore_rules):
                continue
            if relative in hook_paths:
                continue

            yield TemplateEntry(path=path, relative=relative, is_dir=is_dir)
            if is_dir and not item.is_symlink():
                yield from self._walk(path, nested_output, ignore_rules, hook_paths)

    def _render_entry(
        self,
        entry: TemplateEntry,
        output_root: Path,
        patterns: list[re.Pattern[str]],
        result: GenerationResult,
    ) -> None:
        rendered_relative = self.renderer.render_path(entry.relative, self.variables).lstrip("/")
        destination = output_root / rendered_relative

        if entry.is_dir:
            result.directories.append(ensure_dir(destination))
            return

        content = read_bytes(entry.path)
        # copy_without_render globs see the path relative to the output root
        output_relative = Path(os.path.relpath(destination, output_root)).as_posix()
        copy_verbatim = is_binary(content) or any(glob_matches(p, output_relative) for p in patterns)

        text = None if copy_verbatim else _decode_text(content)

        # placeholder-free text is copied so its line endings survive
        if text is None or not has_placeholders(text):
            result.copied.append(copy_file(entry.path, destination))
            return

        rendered = self.renderer.render_string(text, self.variables, path=entry.path)
        write_bytes(destination, rendered.encode("utf-8"))
        _copy_mode(entry.path, destination)
        result.rendered.append(destination)


def _decode_text(content: bytes) -> str | None:
    """Non-UTF-8 files are copied as they are."""
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError:
        return None


def _prepare_output_dir(output_dir: Path) -> Path:
    ensure_dir(output_dir)
    return canonicalize(output_dir)


def _copy_mode(source: Path, destination: Path) -> None:
    """Keep the executable bit of rendered scripts."""
    try:
        shutil.copymode(source, destination)
    except OSError as err:
        raise FilesystemError(f"Could not set permissions ({err.strerror or err})", destination) from err
