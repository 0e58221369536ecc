"""Semantic validation of a loaded manifest.

``validate_manifest`` never raises: it walks the manifest once and returns
every issue it finds, in declaration order.  An empty list means the
manifest is usable.  Variables are checked in order because an ``only_if``
may only refer to a variable declared earlier, and its value must have the
same type as that variable's default.
"""

from __future__ import annotations

import re
from pathlib import Path

from kickstart.manifest.globs import InvalidPatternError, compile_glob
from kickstart.manifest.loader import load_manifest_file
from kickstart.manifest.models import Manifest, format_value, value_type, values_equal


def validate_manifest(manifest: Manifest, template_root: str | Path | None = None) -> list[str]:
    """Find invalid globs and regexes, missing hooks, bad defaults and bad conditions.

    Args:
        manifest: The loaded manifest.
        template_root: Directory hook paths are relative to.  Defaults to the
            current working directory.

    Returns:
        Human readable issues; empty when the manifest is valid.
    """
    issues: list[str] = []
    root = Path(template_root) if template_root is not None else Path(".")

    for pattern in manifest.copy_without_render:
        try:
            compile_glob(pattern)
        except InvalidPatternError as err:
            issues.append(f"In copy_without_render, `{pattern}` is not a valid pattern: {err}")

    for hook_path in manifest.all_hook_paths():
        if not (root / hook_path).exists():
            issues.append(f"Hook file `{hook_path}` was not found")

    # name -> type of the default, filled as we go so forward references fail
    types: dict[str, str] = {}

    for var in manifest.variables:
        if var.name in types:
            issues.append(f"Variable `{var.name}` is declared more than once")
        type_name = value_type(var.default)

        if var.choices is not None:
            if not any(values_equal(choice, var.default) for choice in var.choices):
                issues.append(
                    f"Variable `{var.name}` has `{format_value(var.default)}` as default, "
                    "which isn't in the choices"
                )

        if var.only_if is not None:
            cond = var.only_if
            known = types.get(cond.name)
            if known is None:
                issues.append(f"Variable `{var.name}` depends on `{cond.name}`, which wasn't asked")
            elif known != value_type(cond.value):
                issues.append(
                    f"Variable `{var.name}` depends on `{cond.name}={format_value(cond.value)}`, "
                    f"but the type of `{cond.name}` is {known}"
                )

        types[var.name] = type_name

        if var.validation is None:
            continue

        if not isinstance(var.default, str):
            issues.append(f"Variable `{var.name}` has a validation regex but is not a string")
            continue

        try:
            regex = re.compile(var.validation)
        except re.error:
            issues.append(f"Variable `{var.name}` has an invalid validation regex: {var.validation}")
            continue

        if regex.search(var.default) is None:
            issues.append(
                f"Variable `{var.name}` has a default that doesn't pass its validation regex"
            )

    return issues


def validate_file(path: str | Path) -> list[str]:
    """Load a ``template.toml`` and validate it.

    Hook paths are resolved relative to the file's directory.

    Raises:
        MissingManifestError: If the file does not exist.
        ManifestParseError: If it cannot be deserialized.
    """
    manifest_path = Path(path)
    manifest = load_manifest_file(manifest_path)
    return validate_manifest(manifest, manifest_path.parent)
