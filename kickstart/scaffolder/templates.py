"""Jinja2 template rendering for project generation.

Provides the TemplateRenderer class which renders in-memory template text
(file contents, file paths, variable defaults, glob patterns, hook scripts)
against the resolved variables.  Every failure is re-raised as
``RenderError`` carrying the source path, or ``None`` for one-off renders.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError, TemplateSyntaxError

from kickstart.errors import RenderError

# ``$$`` stands for ``|`` in file names, where a pipe is not always allowed.
PIPE_ESCAPE = "$$"

_EXPRESSION_RE = re.compile(r"\{\{.*?\}\}|\{%.*?%\}", re.DOTALL)
_PLACEHOLDER_MARKERS = ("{{", "{%", "{#")


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders template text with Jinja2.

    Undefined variables are errors rather than empty strings, output is not
    HTML-escaped, and trailing newlines are preserved so placeholder-free
    files come out byte-identical.
    """

    def __init__(self) -> None:
        self.env = Environment(
            autoescape=False,  # noqa: S701
            keep_trailing_newline=True,
            undefined=StrictUndefined,
            finalize=_finalize,
        )
        # Register custom filters
        self.env.filters["upper_camel_case"] = _upper_camel_case_filter
        self.env.filters["camel_case"] = _camel_case_filter
        self.env.filters["snake_case"] = _snake_case_filter
        self.env.filters["kebab_case"] = _kebab_case_filter
        self.env.filters["shouty_snake_case"] = _shouty_snake_case_filter
        self.env.filters["shouty_kebab_case"] = _shouty_kebab_case_filter
        self.env.filters["title_case"] = _title_case_filter
        self.env.filters["slugify"] = _slugify_filter
        # Jinja2 normalises newlines; files using CRLF keep them.
        self._crlf_env = self.env.overlay(newline_sequence="\r\n")

    def render_string(
        self,
        template_string: str,
        context: Mapping[str, Any],
        path: Path | str | None = None,
    ) -> str:
        """Render *template_string* with *context*.

        Args:
            template_string: The template text.
            context: Variables available inside the template.
            path: Source file the text came from, used in error messages.

        Raises:
            RenderError: On syntax errors, undefined variables or failing
                filters.
        """
        env = self._crlf_env if "\r\n" in template_string else self.env
        try:
            return env.from_string(template_string).render(dict(context))
        except TemplateSyntaxError as err:
            raise RenderError(f"{err.message} (line {err.lineno})", path) from err
        except TemplateError as err:
            raise RenderError(str(err.message or err), path) from err
        except (TypeError, ValueError, ArithmeticError, LookupError) as err:
            raise RenderError(f"{type(err).__name__}: {err}", path) from err

    def render_path(self, relative_path: str, context: Mapping[str, Any]) -> str:
        """Render a template-relative path.

        ``$$`` inside ``{{ }}`` / ``{% %}`` is read as a filter pipe; any
        ``$$`` left after rendering becomes a literal ``|``.
        """
        prepared = _EXPRESSION_RE.sub(
            lambda match: match.group(0).replace(PIPE_ESCAPE, "|"), relative_path
        )
        return self.render_string(prepared, context).replace(PIPE_ESCAPE, "|")


def has_placeholders(text: str) -> bool:
    """Return ``True`` if *text* contains any template syntax."""
    return any(marker in text for marker in _PLACEHOLDER_MARKERS)


def _finalize(value: Any) -> Any:
    # Booleans print the way they are written in template.toml.
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+[0-9]*|[A-Z]+[0-9]*|[0-9]+")


def _words(value: Any) -> list[str]:
    """Split ``Hello world``, ``helloWorld`` or ``hello-world`` into words."""
    return _WORD_RE.findall(str(value))


def _upper_camel_case_filter(value: Any) -> str:
    """``hello world`` -> ``HelloWorld``."""
    return "".join(word.capitalize() for word in _words(value))


def _camel_case_filter(value: Any) -> str:
    """``hello world`` -> ``helloWorld``."""
    words = _words(value)
    if not words:
        return ""
    return words[0].lower() + "".join(word.capitalize() for word in words[1:])


def _snake_case_filter(value: Any) -> str:
    """``HelloWorld`` -> ``hello_world``."""
    return "_".join(word.lower() for word in _words(value))


def _kebab_case_filter(value: Any) -> str:
    """``HelloWorld`` -> ``hello-world``."""
    return "-".join(word.lower() for word in _words(value))


def _shouty_snake_case_filter(value: Any) -> str:
    """``HelloWorld`` -> ``HELLO_WORLD``."""
    return "_".join(word.upper() for word in _words(value))


def _shouty_kebab_case_filter(value: Any) -> str:
    """``HelloWorld`` -> ``HELLO-WORLD``."""
    return "-".join(word.upper() for word in _words(value))


def _title_case_filter(value: Any) -> str:
    """``hello_world`` -> ``Hello World``."""
    return " ".join(word.capitalize() for word in _words(value))


def _slugify_filter(value: Any) -> str:
    """Convert a string to a URL/filename-safe slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", str(value).lower().strip())
    return slug.strip("-")
