"""Loading ``template.toml`` into a ``Manifest``."""

from __future__ import annotations

import tomllib
from pathlib import Path

from pydantic import ValidationError

from kickstart.errors import ManifestParseError, MissingManifestError
from kickstart.manifest.models import Manifest
from kickstart.utils import read_bytes


def _describe_validation_error(err: ValidationError) -> str:
    lines = []
    for issue in err.errors():
        location = ".".join(str(part) for part in issue["loc"]) or "<root>"
        if issue["type"] == "extra_forbidden":
            lines.append(f"unknown field `{location}`")
        else:
            lines.append(f"`{location}`: {issue['msg']}")
    return "; ".join(lines)


def load_manifest(data: bytes | str, path: Path | None = None) -> Manifest:
    """Deserialize manifest content.

    Args:
        data: Raw TOML, as bytes or text.
        path: Where the content came from, for error messages only.

    Raises:
        ManifestParseError: If the content is not UTF-8, not TOML, or does
            not fit the manifest schema (unknown top-level keys included).
    """
    if isinstance(data, bytes):
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as err:
            raise ManifestParseError("The template.toml is not valid UTF-8", path) from err
    else:
        text = data

    try:
        raw = tomllib.loads(text)
    except tomllib.TOMLDecodeError as err:
        raise ManifestParseError(f"Invalid TOML ({err})", path) from err

    try:
        return Manifest.model_validate(raw)
    except ValidationError as err:
        raise ManifestParseError(
            f"The template.toml is invalid ({_describe_validation_error(err)})", path
        ) from err


def load_manifest_file(path: str | Path) -> Manifest:
    """Read and deserialize a ``template.toml`` from disk.

    Raises:
        MissingManifestError: If the file does not exist.
        ManifestParseError: If it cannot be deserialized.
    """
    manifest_path = Path(path)
    if not manifest_path.is_file():
        raise MissingManifestError(manifest_path)
    return load_manifest(read_bytes(manifest_path), manifest_path)
