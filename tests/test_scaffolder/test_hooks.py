"""Tests for staging and running pre/post generation hooks.

Hooks are POSIX shell scripts here, so these tests need ``/bin/sh``.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

from kickstart.errors import HookError, RenderError
from kickstart.manifest import Condition, Hook
from kickstart.scaffolder import HookRunner

pytestmark = [
    pytest.mark.unit,
    pytest.mark.skipif(sys.platform == "win32", reason="hooks are shell scripts"),
]


@pytest.fixture
def template_root(tmp_path: Path) -> Path:
    root = tmp_path / "template"
    hooks = root / "hooks"
    hooks.mkdir(parents=True)
    (hooks / "write.sh").write_text(
        "#!/bin/sh\necho '{{ project_name }}' > created-by-hook.txt\n", encoding="utf-8"
    )
    (hooks / "fail.sh").write_text("#!/bin/sh\nexit 3\n", encoding="utf-8")
    (hooks / "broken.sh").write_text("#!/bin/sh\necho {{ missing }}\n", encoding="utf-8")
    return root


@pytest.fixture
def scratch(tmp_path: Path) -> Path:
    path = tmp_path / "scratch"
    path.mkdir()
    return path


# ---------------------------------------------------------------------------
# Staging
# ---------------------------------------------------------------------------


class TestStage:
    def test_hooks_are_rendered_into_scratch(self, template_root: Path, scratch: Path):
        runner = HookRunner(template_root, scratch)
        hooks = [Hook(name="Write", path="hooks/write.sh")]

        staged = runner.stage(hooks, {"project_name": "demo"})

        assert len(staged) == 1
        assert staged[0].path.parent == scratch
        assert staged[0].path.name == "01-write.sh"
        assert staged[0].original_path == "hooks/write.sh"
        assert "echo 'demo'" in staged[0].path.read_text(encoding="utf-8")
        assert os.access(staged[0].path, os.X_OK)
        # The template itself is untouched
        assert "{{ project_name }}" in (template_root / "hooks" / "write.sh").read_text(encoding="utf-8")

    def test_gated_hooks_are_skipped(self, template_root: Path, scratch: Path):
        runner = HookRunner(template_root, scratch)
        hooks = [
            Hook(name="Write", path="hooks/write.sh", only_if=Condition(name="git", value=True)),
            Hook(name="Fail", path="hooks/fail.sh"),
        ]

        staged = runner.stage(hooks, {"project_name": "demo", "git": False})

        assert [hook_file.name for hook_file in staged] == ["Fail"]

    def test_render_failure_names_the_hook(self, template_root: Path, scratch: Path):
        runner = HookRunner(template_root, scratch)

        with pytest.raises(RenderError) as exc_info:
            runner.stage([Hook(name="Broken", path="hooks/broken.sh")], {})

        assert exc_info.value.path == Path("hooks/broken.sh")

    def test_non_text_hook(self, template_root: Path, scratch: Path):
        (template_root / "hooks" / "binary").write_bytes(b"\xff\xfe\x00")
        runner = HookRunner(template_root, scratch)

        with pytest.raises(HookError, match="not a UTF-8 text file"):
            runner.stage([Hook(name="Binary", path="hooks/binary")], {})


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


class TestExecute:
    @pytest.mark.asyncio
    async def test_runs_in_the_output_directory(self, template_root: Path, scratch: Path, tmp_path: Path):
        output = tmp_path / "output"
        output.mkdir()
        runner = HookRunner(template_root, scratch)

        await runner.run([Hook(name="Write", path="hooks/write.sh")], {"project_name": "demo"}, output)

        assert (output / "created-by-hook.txt").read_text(encoding="utf-8").strip() == "demo"

    @pytest.mark.asyncio
    async def test_non_zero_exit_is_an_error(self, template_root: Path, scratch: Path, tmp_path: Path):
        runner = HookRunner(template_root, scratch)
        hooks = [Hook(name="Fail", path="hooks/fail.sh"), Hook(name="Write", path="hooks/write.sh")]

        with pytest.raises(HookError) as exc_info:
            await runner.run(hooks, {"project_name": "demo"}, tmp_path)

        assert exc_info.value.name == "Fail"
        assert exc_info.value.returncode == 3
        assert "exited with a non 0 code (3)" in str(exc_info.value)
        # The hook after the failing one never ran
        assert not (tmp_path / "created-by-hook.txt").exists()

    @pytest.mark.asyncio
    async def test_timeout(self, template_root: Path, scratch: Path, tmp_path: Path):
        (template_root / "hooks" / "slow.sh").write_text("#!/bin/sh\nsleep 5\n", encoding="utf-8")
        runner = HookRunner(template_root, scratch, timeout=0.2)

        with pytest.raises(HookError, match="timed out"):
            await runner.run([Hook(name="Slow", path="hooks/slow.sh")], {}, tmp_path)
