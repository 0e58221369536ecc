"""Tests for rendering a template tree (kickstart.scaffolder.generator).

Covers:
- Placeholder-free templates produce byte-identical output, whatever the line endings
- Rendered paths and contents, $$ pipes in file names
- Binary, non-UTF-8 and copy_without_render files copied verbatim
- Exclusions: VCS metadata, manifest, ignore rules, hooks, nested output
- Templates living inside the output directory
- The directory walk stays off the event loop thread
- The manifest ``directory`` key
- Errors: malformed globs, render failures tagged with the source path
"""

from __future__ import annotations

import os
import threading
from pathlib import Path

import pytest

from kickstart.errors import FilesystemError, GlobPatternError, RenderError
from kickstart.manifest import load_manifest
from kickstart.scaffolder import GenerationResult, ProjectGenerator

pytestmark = pytest.mark.unit


def _manifest_text(extra: str = "") -> str:
    return f"""\
name = "Test"
kickstart_version = 1
{extra}

[[variables]]
name = "project_name"
default = "demo"
prompt = "Name?"
"""


async def _generate(root: Path, output: Path, variables: dict | None = None) -> GenerationResult:
    manifest = load_manifest((root / "template.toml").read_text(encoding="utf-8"))
    generator = ProjectGenerator(manifest, root, variables or {"project_name": "demo"})
    return await generator.generate(output)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestRendering:
    @pytest.mark.asyncio
    async def test_placeholder_free_tree_is_identical(self, make_template, output_dir, read_tree):
        files = {
            "README.md": "# Title\n\nNo placeholders here.\n",
            "src/main.py": "print('hello')\n",
            "src/pkg/__init__.py": "",
            "empty/": "",
        }
        root = make_template(_manifest_text(), files)

        await _generate(root, output_dir)

        expected = read_tree(root)
        del expected["template.toml"]
        assert read_tree(output_dir) == expected

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "content",
        [b"a\r\nb\nc\n", b"x\ry\r", b"a\r\n\r\n\n", b"old mac\rline\r", b"crlf only\r\n"],
    )
    async def test_line_endings_survive_without_placeholders(self, make_template, output_dir, content: bytes):
        root = make_template(_manifest_text(), {"notes.txt": content})

        result = await _generate(root, output_dir)

        assert (output_dir / "notes.txt").read_bytes() == content
        assert result.copied == [(output_dir / "notes.txt").resolve()]
        assert result.rendered == []

    @pytest.mark.asyncio
    async def test_paths_and_contents_are_rendered(self, make_template, output_dir):
        root = make_template(
            _manifest_text(),
            {"{{ project_name }}/README.md": "# {{ project_name | upper_camel_case }}\n"},
        )

        result = await _generate(root, output_dir, {"project_name": "my app"})

        readme = output_dir / "my app" / "README.md"
        assert readme.read_text(encoding="utf-8") == "# MyApp\n"
        assert result.rendered == [readme.resolve()]
        assert (output_dir / "my app").resolve() in result.directories

    @pytest.mark.asyncio
    async def test_double_dollar_in_file_name(self, make_template, output_dir):
        root = make_template(
            _manifest_text(),
            {"{{ project_name $$ upper }}.txt": "x\n"},
        )
        await _generate(root, output_dir)
        assert (output_dir / "DEMO.txt").is_file()

    @pytest.mark.asyncio
    async def test_executable_bit_is_kept(self, make_template, output_dir):
        root = make_template(_manifest_text(), {"run.sh": "#!/bin/sh\necho {{ project_name }}\n"})
        (root / "run.sh").chmod(0o755)

        await _generate(root, output_dir)

        assert (output_dir / "run.sh").stat().st_mode & 0o111

    @pytest.mark.asyncio
    async def test_output_directory_is_created(self, make_template, tmp_path: Path):
        root = make_template(_manifest_text(), {"a.txt": "a\n"})
        output = tmp_path / "deep" / "new" / "output"

        result = await _generate(root, output)

        assert (output / "a.txt").is_file()
        assert result.output_dir == output.resolve()

    @pytest.mark.asyncio
    async def test_render_error_names_the_file(self, make_template, output_dir):
        root = make_template(_manifest_text(), {"broken.txt": "{{ undefined_var }}\n"})

        with pytest.raises(RenderError) as exc_info:
            await _generate(root, output_dir)

        assert exc_info.value.path is not None
        assert exc_info.value.path.name == "broken.txt"


# ---------------------------------------------------------------------------
# Verbatim copies
# ---------------------------------------------------------------------------


class TestVerbatimCopies:
    @pytest.mark.asyncio
    async def test_binary_file_is_copied(self, make_template, output_dir):
        content = b"\x89PNG\x00\x01{{ project_name }}\x00"
        root = make_template(_manifest_text(), {"image.bin": content})

        result = await _generate(root, output_dir)

        assert (output_dir / "image.bin").read_bytes() == content
        assert len(result.copied) == 1

    @pytest.mark.asyncio
    async def test_non_utf8_file_is_copied(self, make_template, output_dir):
        content = "café {{ project_name }}\n".encode("latin-1")
        root = make_template(_manifest_text(), {"latin1.txt": content})

        await _generate(root, output_dir)

        assert (output_dir / "latin1.txt").read_bytes() == content

    @pytest.mark.asyncio
    async def test_copy_without_render_glob(self, make_template, output_dir):
        root = make_template(
            _manifest_text('copy_without_render = ["*.png", "{{ project_name }}/raw.txt"]'),
            {
                "logo.png": "{{ not rendered }}",
                "static/img/icon.png": "{{ nested }}",
                "{{ project_name }}/raw.txt": "{{ raw }}",
                "{{ project_name }}/cooked.txt": "{{ project_name }}",
            },
        )

        await _generate(root, output_dir)

        assert (output_dir / "logo.png").read_text(encoding="utf-8") == "{{ not rendered }}"
        assert (output_dir / "static/img/icon.png").read_text(encoding="utf-8") == "{{ nested }}"
        assert (output_dir / "demo/raw.txt").read_text(encoding="utf-8") == "{{ raw }}"
        assert (output_dir / "demo/cooked.txt").read_text(encoding="utf-8") == "demo"

    @pytest.mark.asyncio
    async def test_malformed_glob_reports_both_patterns(self, make_template, output_dir):
        root = make_template(
            _manifest_text('copy_without_render = ["{{ project_name }}**"]'),
            {"a.txt": "a"},
        )

        with pytest.raises(GlobPatternError) as exc_info:
            await _generate(root, output_dir)

        assert exc_info.value.pattern_before_rendering == "{{ project_name }}**"
        assert exc_info.value.pattern_after_rendering == "demo**"
        assert "single path component" in exc_info.value.reason
        assert not (output_dir / "a.txt").exists()


# ---------------------------------------------------------------------------
# Exclusions
# ---------------------------------------------------------------------------


class TestExclusions:
    @pytest.mark.asyncio
    async def test_manifest_and_vcs_are_skipped(self, make_template, output_dir):
        root = make_template(
            _manifest_text(),
            {".git/HEAD": "ref: refs/heads/main\n", ".gitignore": "*.pyc\n", "a.txt": "a"},
        )

        await _generate(root, output_dir)

        assert not (output_dir / "template.toml").exists()
        assert not (output_dir / ".git").exists()
        assert (output_dir / ".gitignore").is_file()

    @pytest.mark.asyncio
    async def test_ignore_rules_are_prefixes(self, make_template, output_dir):
        root = make_template(
            _manifest_text('ignore = ["README.md", "docs"]'),
            {
                "README.md": "readme",
                "docs/index.md": "docs",
                "docs_extra.md": "also ignored",
                "kept.md": "kept",
            },
        )

        await _generate(root, output_dir)

        assert sorted(p.name for p in output_dir.iterdir()) == ["kept.md"]

    @pytest.mark.asyncio
    async def test_hook_files_are_skipped(self, make_template, output_dir):
        root = make_template(
            _manifest_text('[[pre_gen_hooks]]\nname = "Check"\npath = "hooks/check.sh"\n'),
            {"hooks/check.sh": "#!/bin/sh\n", "hooks/helper.sh": "#!/bin/sh\n"},
        )

        await _generate(root, output_dir)

        assert not (output_dir / "hooks" / "check.sh").exists()
        assert (output_dir / "hooks" / "helper.sh").is_file()

    @pytest.mark.asyncio
    async def test_output_nested_inside_template(self, make_template):
        root = make_template(_manifest_text(), {"a.txt": "{{ project_name }}"})
        output = root / "generated"

        await _generate(root, output)

        assert (output / "a.txt").read_text(encoding="utf-8") == "demo"
        assert not (output / "generated").exists()

    @pytest.mark.asyncio
    async def test_vcs_metadata_file_is_skipped(self, make_template, output_dir):
        root = make_template(
            _manifest_text(),
            {"sub/.git": "gitdir: ../.git/modules/sub\n", "sub/file.txt": "{{ project_name }}\n"},
        )

        await _generate(root, output_dir)

        assert not (output_dir / "sub" / ".git").exists()
        assert (output_dir / "sub" / "file.txt").read_text(encoding="utf-8") == "demo\n"

    @pytest.mark.asyncio
    async def test_output_is_the_template_directory(self, make_template):
        root = make_template(_manifest_text(), {"a.txt": "a"})

        with pytest.raises(FilesystemError, match="cannot be the template directory"):
            await _generate(root, root)

        assert sorted(p.name for p in root.iterdir()) == ["a.txt", "template.toml"]


class TestTemplateInsideOutput:
    @pytest.mark.asyncio
    async def test_generate_into_parent_of_template(self, make_template, tmp_path: Path):
        root = make_template(
            _manifest_text(),
            {"{{ project_name }}/main.py": "name = '{{ project_name }}'\n"},
            name="tpl",
        )

        result = await _generate(root, tmp_path)

        generated = tmp_path / "demo" / "main.py"
        assert generated.read_text(encoding="utf-8") == "name = 'demo'\n"
        assert result.files == [generated.resolve()]
        assert not (tmp_path / "demo" / "tpl").exists()

    @pytest.mark.asyncio
    async def test_template_files_are_left_alone(self, make_template, tmp_path: Path):
        root = make_template(_manifest_text(), {"a.txt": "{{ project_name }}"}, name="tpl")

        await _generate(root, tmp_path)

        assert (root / "a.txt").read_text(encoding="utf-8") == "{{ project_name }}"
        assert (tmp_path / "a.txt").read_text(encoding="utf-8") == "demo"


class TestEventLoop:
    @pytest.mark.asyncio
    async def test_directory_walk_runs_off_the_loop_thread(self, make_template, output_dir, monkeypatch):
        root = make_template(_manifest_text(), {"a/b/c.txt": "{{ project_name }}", "d.txt": "d"})
        loop_thread = threading.get_ident()
        scan_threads: list[int] = []
        original_scandir = os.scandir

        def recording_scandir(path):
            scan_threads.append(threading.get_ident())
            return original_scandir(path)

        monkeypatch.setattr(os, "scandir", recording_scandir)

        await _generate(root, output_dir)

        assert scan_threads
        assert loop_thread not in scan_threads


class TestDirectoryKey:
    @pytest.mark.asyncio
    async def test_only_the_directory_is_walked(self, make_template, output_dir):
        root = make_template(
            _manifest_text('directory = "template"'),
            {
                "README.md": "About this template repository",
                "template/{{ project_name }}/main.py": "name = '{{ project_name }}'\n",
            },
        )

        await _generate(root, output_dir)

        assert not (output_dir / "README.md").exists()
        generated = output_dir / "template" / "demo" / "main.py"
        assert generated.read_text(encoding="utf-8") == "name = 'demo'\n"


# ---------------------------------------------------------------------------
# Cleanup integration
# ---------------------------------------------------------------------------


class TestGenerateRunsCleanup:
    @pytest.mark.asyncio
    async def test_cleanup_after_rendering(self, make_template, output_dir):
        manifest = """\
name = "Cleanup"
kickstart_version = 1

[[cleanup]]
name = "spa"
value = false
paths = ["{{ project_name }}/frontend"]

[[variables]]
name = "project_name"
default = "demo"
prompt = "Name?"

[[variables]]
name = "spa"
default = false
prompt = "SPA?"
"""
        root = make_template(
            manifest,
            {"{{ project_name }}/frontend/index.html": "<html/>", "{{ project_name }}/app.py": ""},
        )

        result = await _generate(root, output_dir, {"project_name": "demo", "spa": False})

        assert not (output_dir / "demo" / "frontend").exists()
        assert (output_dir / "demo" / "app.py").is_file()
        assert result.deleted == [(output_dir / "demo" / "frontend").resolve()]
