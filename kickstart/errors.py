"""Exception hierarchy for kickstart.

Every fatal condition raised by the generation engine derives from
``KickstartError``.  Exceptions that wrap a lower-level failure (an
``OSError``, a Jinja2 error, a ``tomllib`` decode error, ...) are raised with
``raise ... from err`` so the full causal chain can be reported to the user.

Manifest *validation* issues are not exceptions: ``validate_manifest`` returns
them as a list of strings.
"""

from __future__ import annotations

from pathlib import Path


class KickstartError(Exception):
    """Base class for every error raised by kickstart."""


# ---------------------------------------------------------------------------
# Manifest errors
# ---------------------------------------------------------------------------


class MissingManifestError(KickstartError):
    """Raised when the template has no ``template.toml``."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"The template.toml is missing: {path}")


class ManifestParseError(KickstartError):
    """Raised when a manifest is not valid TOML or does not fit the schema."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.path = path
        if path is not None:
            message = f"{message}: {path}"
        super().__init__(message)


class InvalidManifestError(KickstartError):
    """Raised when resolution meets a manifest that should have failed validation."""


# ---------------------------------------------------------------------------
# Resolution errors
# ---------------------------------------------------------------------------


class UnreadableInputError(KickstartError):
    """Raised when the input source cannot be read (closed stdin, EOF)."""

    def __init__(self, message: str = "Unable to read from stdin") -> None:
        super().__init__(message)


class InvalidInputError(KickstartError):
    """Raised when a value given for a variable is not acceptable."""

    def __init__(self, message: str, name: str | None = None) -> None:
        self.name = name
        super().__init__(message)


class InvalidVariableNameError(KickstartError):
    """Raised when a caller references a variable the manifest does not declare."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Variable `{name}` is not defined in the template")


# ---------------------------------------------------------------------------
# Generation errors
# ---------------------------------------------------------------------------


class RenderError(KickstartError):
    """Raised when the template engine fails.

    ``path`` is the source file being rendered, or ``None`` for one-off
    renders (file names, defaults, glob patterns, cleanup paths).
    """

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else None
        self.reason = message
        if self.path is not None:
            text = f"{message}: {self.path}"
        else:
            text = f"{message}: rendering a one-off template"
        super().__init__(text)


class FilesystemError(KickstartError):
    """Raised when reading or writing the filesystem fails."""

    def __init__(self, message: str, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(f"{message}: {self.path}")


class GlobPatternError(KickstartError):
    """Raised when a copy_without_render pattern is malformed."""

    def __init__(
        self,
        reason: str,
        pattern_before_rendering: str,
        pattern_after_rendering: str | None = None,
    ) -> None:
        self.reason = reason
        self.pattern_before_rendering = pattern_before_rendering
        self.pattern_after_rendering = pattern_after_rendering
        if pattern_after_rendering is not None and pattern_after_rendering != pattern_before_rendering:
            text = (
                f"Invalid glob pattern `{pattern_before_rendering}` "
                f"(rendered as `{pattern_after_rendering}`): {reason}"
            )
        else:
            text = f"Invalid glob pattern `{pattern_before_rendering}`: {reason}"
        super().__init__(text)


class HookError(KickstartError):
    """Raised when a hook cannot be staged or exits with a non-zero status."""

    def __init__(self, name: str, message: str, returncode: int | None = None) -> None:
        self.name = name
        self.returncode = returncode
        super().__init__(message)


class TemplateSourceError(KickstartError):
    """Raised when a remote template cannot be fetched."""

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(message)


def iter_causes(error: BaseException):
    """Yield each exception in the ``__cause__`` / ``__context__`` chain of *error*."""
    seen: set[int] = {id(error)}
    current = error.__cause__ or error.__context__
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__
