"""Glob patterns for ``copy_without_render``.

Patterns are matched against paths relative to the output root, written with
``/`` separators.  The syntax:

* ``?`` matches any single character and ``*`` any run of characters; both
  may cross ``/``.
* ``**`` must be a whole path component and matches zero or more
  directories (``**/*.png`` matches ``logo.png`` and ``img/logo.png``).
* ``[abc]``, ``[a-z]`` and ``[!abc]`` are character classes; a ``]`` right
  after the opening bracket is literal.

Unlike ``fnmatch`` malformed patterns are rejected instead of being matched
literally, so typos in a manifest surface during validation.
"""

from __future__ import annotations

import re


class InvalidPatternError(ValueError):
    """Raised by ``compile_glob`` with a human readable reason."""


def _translate_class(pattern: str, start: int) -> tuple[str, int]:
    """Translate the class opening at ``pattern[start] == "["``; return (regex, next index)."""
    index = start + 1
    negate = False
    if index < len(pattern) and pattern[index] == "!":
        negate = True
        index += 1

    body_start = index
    if index < len(pattern) and pattern[index] == "]":
        index += 1
    while index < len(pattern) and pattern[index] != "]":
        index += 1
    if index >= len(pattern):
        raise InvalidPatternError(f"unclosed character class at position {start}")

    body = pattern[body_start:index]
    items: list[str] = []
    pos = 0
    while pos < len(body):
        if pos + 2 < len(body) and body[pos + 1] == "-":
            low, high = body[pos], body[pos + 2]
            if low > high:
                raise InvalidPatternError(f"invalid range `{low}-{high}` in character class")
            items.append(f"{re.escape(low)}-{re.escape(high)}")
            pos += 3
        else:
            items.append(re.escape(body[pos]))
            pos += 1

    return f"[{'^' if negate else ''}{''.join(items)}]", index + 1


def compile_glob(pattern: str) -> re.Pattern[str]:
    """Compile *pattern* to a regex usable with ``fullmatch``.

    Raises:
        InvalidPatternError: If the pattern is malformed.
    """
    parts: list[str] = []
    index = 0
    length = len(pattern)

    while index < length:
        char = pattern[index]
        if char == "*":
            end = index
            while end < length and pattern[end] == "*":
                end += 1
            stars = end - index
            if stars > 2:
                raise InvalidPatternError("wildcards are either regular `*` or recursive `**`")
            if stars == 1:
                parts.append(".*")
            else:
                starts_component = index == 0 or pattern[index - 1] == "/"
                ends_component = end == length or pattern[end] == "/"
                if not (starts_component and ends_component):
                    raise InvalidPatternError("recursive wildcards must form a single path component")
                if end < length:
                    parts.append("(?:.*/)?")
                    end += 1
                else:
                    parts.append(".*")
            index = end
        elif char == "?":
            parts.append(".")
            index += 1
        elif char == "[":
            translated, index = _translate_class(pattern, index)
            parts.append(translated)
        else:
            parts.append(re.escape(char))
            index += 1

    return re.compile("".join(parts), re.DOTALL)


def glob_matches(compiled: re.Pattern[str], relative_path: str) -> bool:
    return compiled.fullmatch(relative_path.replace("\\", "/")) is not None
