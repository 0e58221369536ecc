"""Post-generation cleanup of the output tree."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path

from kickstart.manifest.models import Cleanup, values_equal
from kickstart.scaffolder.templates import TemplateRenderer
from kickstart.utils import canonicalize, is_within, remove_path


def apply_cleanup(
    rules: Sequence[Cleanup],
    variables: Mapping[str, bool | int | str],
    output_root: Path,
    renderer: TemplateRenderer,
) -> list[Path]:
    """Delete the paths of every rule whose variable resolved to the rule's value.

    Each path is rendered, joined onto *output_root* and canonicalized.  A
    path that escapes the output root, is the root itself, or does not exist
    is skipped silently.

    Returns:
        The paths that were deleted.
    """
    root = canonicalize(output_root)
    deleted: list[Path] = []

    for rule in rules:
        if rule.name not in variables or not values_equal(variables[rule.name], rule.value):
            continue
        for pattern in rule.paths:
            rendered = renderer.render_string(pattern, variables)
            target = canonicalize(root / rendered)
            if target == root or not is_within(target, root):
                continue
            if not target.exists():
                continue
            remove_path(target)
            deleted.append(target)

    return deleted
