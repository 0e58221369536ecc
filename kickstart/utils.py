"""Shared utility functions for kickstart.

Provides async command execution, the filesystem collaborator used by the
generation engine (every failure is re-raised as ``FilesystemError`` tagged
with the offending path), and Rich-based console helpers.
"""

from __future__ import annotations

import asyncio
import os
import shutil
from pathlib import Path

from rich.console import Console
from rich.rule import Rule
from rich.table import Table

from kickstart.errors import FilesystemError

console = Console()
err_console = Console(stderr=True)

VCS_METADATA: frozenset[str] = frozenset({".git", ".hg", ".svn", ".bzr"})

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: float | None = None,
    capture: bool = True,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run an executable asynchronously.

    Args:
        cmd: Program and arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
            ``None`` waits forever.
        capture: Whether to capture stdout/stderr (if ``False`` they inherit
            the parent's streams).
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  If *capture* is ``False``
        the stdout/stderr strings will be empty.  A timeout yields a return
        code of ``-1``.

    Raises:
        OSError: If the executable cannot be spawned.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    stdout_pipe = asyncio.subprocess.PIPE if capture else None
    stderr_pipe = asyncio.subprocess.PIPE if capture else None

    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=stdout_pipe,
        stderr=stderr_pipe,
        cwd=str(cwd) if cwd else None,
        env=merged_env,
    )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (-1, "", f"Command timed out after {timeout}s: {' '.join(cmd)}")

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def ensure_dir(path: str | Path) -> Path:
    """Create a directory (and parents) if it does not exist.

    Calling it on an existing directory, or racing another caller creating
    the same directory, is not an error.

    Returns:
        The ``Path`` that was ensured.
    """
    dir_path = Path(path)
    try:
        dir_path.mkdir(parents=True, exist_ok=True)
    except OSError as err:
        raise FilesystemError(f"Could not create directory ({err.strerror or err})", dir_path) from err
    return dir_path


def read_bytes(path: str | Path) -> bytes:
    """Read a whole file as bytes."""
    file_path = Path(path)
    try:
        return file_path.read_bytes()
    except OSError as err:
        raise FilesystemError(f"Could not read file ({err.strerror or err})", file_path) from err


def write_bytes(path: str | Path, content: bytes) -> Path:
    """Write *content* to *path*, creating parent directories first."""
    file_path = Path(path)
    ensure_dir(file_path.parent)
    try:
        file_path.write_bytes(content)
    except OSError as err:
        raise FilesystemError(f"Could not write file ({err.strerror or err})", file_path) from err
    return file_path


def copy_file(source: str | Path, destination: str | Path) -> Path:
    """Copy a file byte-for-byte (permission bits included)."""
    dest = Path(destination)
    ensure_dir(dest.parent)
    try:
        shutil.copy2(source, dest)
    except OSError as err:
        raise FilesystemError(f"Could not copy file ({err.strerror or err})", source) from err
    return dest


def remove_path(path: str | Path) -> None:
    """Remove a file, or a directory recursively."""
    target = Path(path)
    try:
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        else:
            target.unlink()
    except OSError as err:
        raise FilesystemError(f"Could not delete ({err.strerror or err})", target) from err


def canonicalize(path: str | Path) -> Path:
    """Return the absolute path of *path* with symlinks and ``..`` resolved."""
    return Path(os.path.realpath(path))


def is_within(path: Path, root: Path) -> bool:
    """Return ``True`` if *path* is *root* or lies underneath it."""
    return path == root or root in path.parents


def is_binary(content: bytes) -> bool:
    """A file is treated as binary as soon as it contains a NUL byte."""
    return b"\x00" in content


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)  -> "3.7s"
        format_duration(65.2) -> "1m 5s"
    """
    if seconds < 0:
        return "0.0s"

    minutes = int(seconds // 60)
    secs = seconds % 60
    if minutes > 0:
        return f"{minutes}m {int(secs)}s"
    return f"{secs:.1f}s"


def print_phase_header(title: str) -> None:
    """Print a rule announcing a pipeline step."""
    console.print(Rule(f"[bold cyan] {title} [/bold cyan]", style="cyan"))


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message on stderr."""
    err_console.print(message, style="bold red", markup=False, highlight=False)


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
