"""Shared pytest fixtures for the kickstart test suite.

Provides reusable fixtures for:
- Building template trees (manifest + files) under ``tmp_path``
- Sample manifests used across the manifest, resolver and scaffolder tests
- Loaded ``Manifest`` objects
"""

from __future__ import annotations

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from kickstart.manifest import Manifest, load_manifest
from kickstart.scaffolder import TemplateRenderer

TemplateFactory = Callable[..., Path]


# ---------------------------------------------------------------------------
# Sample manifests
# ---------------------------------------------------------------------------

BASIC_MANIFEST = """\
name = "Test template"
description = "A description"
kickstart_version = 1

[[variables]]
name = "project_name"
default = "My project"
prompt = "What's the name of your project?"

[[variables]]
name = "database"
default = "postgres"
prompt = "Which database to use?"
choices = ["postgres", "mysql"]

[[variables]]
name = "pg_version"
prompt = "Which version of Postgres?"
default = "10.4"
choices = ["10.4", "9.3"]
only_if = { name = "database", value = "postgres" }
"""


@pytest.fixture
def parse_manifest() -> Callable[[str], Manifest]:
    """Parse a (possibly indented) TOML manifest."""

    def _parse(text: str) -> Manifest:
        return load_manifest(textwrap.dedent(text))

    return _parse


@pytest.fixture
def basic_manifest_text() -> str:
    return BASIC_MANIFEST


@pytest.fixture
def basic_manifest() -> Manifest:
    return load_manifest(BASIC_MANIFEST)


@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


# ---------------------------------------------------------------------------
# Template trees
# ---------------------------------------------------------------------------


@pytest.fixture
def make_template(tmp_path: Path) -> TemplateFactory:
    """Factory writing a template directory and returning its root.

    Usage::

        root = make_template(MANIFEST, {"README.md": "# {{ project_name }}\\n"})

    File contents given as ``str`` are written as UTF-8, ``bytes`` verbatim.
    """

    def _make(
        manifest: str,
        files: dict[str, str | bytes] | None = None,
        name: str = "template",
    ) -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        (root / "template.toml").write_bytes(textwrap.dedent(manifest).encode("utf-8"))
        for relative, content in (files or {}).items():
            path = root / relative
            if relative.endswith("/"):
                path.mkdir(parents=True, exist_ok=True)
                continue
            path.parent.mkdir(parents=True, exist_ok=True)
            data = content if isinstance(content, bytes) else content.encode("utf-8")
            path.write_bytes(data)
        return root

    return _make


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Empty output directory for generated projects."""
    out = tmp_path / "output"
    out.mkdir()
    return out


@pytest.fixture
def read_tree() -> Callable[[Path], dict[str, bytes | None]]:
    """Map every path under a root to its bytes (``None`` for directories)."""

    def _read(root: Path) -> dict[str, bytes | None]:
        result: dict[str, bytes | None] = {}
        for path in sorted(root.rglob("*")):
            relative = path.relative_to(root).as_posix()
            result[relative] = None if path.is_dir() else path.read_bytes()
        return result

    return _read
