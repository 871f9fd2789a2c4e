"""Syntax highlighting for fenced code blocks.

Lexer and style lookups are cached for the life of the process: the first
worker thread that asks for a language or theme pays for the lookup and every
later caller reuses the same read-only object. Formatters are cheap and hold
per-call state, so one is built for each highlighted block.
"""

from __future__ import annotations

import functools
import re
import typing as typ
from html import escape

from pygments import highlight as pygments_highlight
from pygments.formatters.html import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from .errors import HighlightThemeError

if typ.TYPE_CHECKING:
    from pygments.lexer import Lexer
    from pygments.style import Style

HIGHLIGHT_CSS_CLASS = "highlight"
HIGHLIGHT_OPEN_TAG = re.compile(r'<div class="highlight"')


class SyntaxHighlighter(typ.Protocol):
    """Capability rendering a code block for a known language tag."""

    def highlight(self, code: str, tag: str, theme: str) -> str | None:
        """Return highlighted HTML, or ``None`` when ``tag`` is unknown."""
        ...


@functools.cache
def _lexer_for(tag: str) -> Lexer | None:
    try:
        return get_lexer_by_name(tag)
    except ClassNotFound:
        return None


@functools.cache
def _style_for(theme: str) -> type[Style]:
    try:
        return get_style_by_name(theme)
    except ClassNotFound as exc:
        raise HighlightThemeError(repr(theme)) from exc


def check_theme(theme: str) -> None:
    """Resolve ``theme`` once, raising ``HighlightThemeError`` if unknown."""
    _style_for(theme)


def _attach_language_attribute(html: str, language: str) -> str:
    """Add a single language attribute to an already highlighted block."""
    safe_lang = escape(language, quote=True)
    return HIGHLIGHT_OPEN_TAG.sub(
        f'<div class="{HIGHLIGHT_CSS_CLASS}" data-language="{safe_lang}"', html, 1
    )


class PygmentsHighlighter:
    """Highlight code with Pygments using inline styles from a named theme."""

    def highlight(self, code: str, tag: str, theme: str) -> str | None:
        """Render ``code`` as highlighted HTML.

        Parameters
        ----------
        code : str
            Source snippet, as found between the fence markers.
        tag : str
            Language tag from the fence; matched against Pygments lexer
            aliases case-insensitively.
        theme : str
            Pygments style name.

        Returns
        -------
        str or None
            HTML with a ``data-language`` attribute, or ``None`` when no lexer
            matches ``tag``.

        Raises
        ------
        HighlightThemeError
            If ``theme`` is not a known Pygments style.
        """
        lexer = _lexer_for(tag.lower())
        if lexer is None:
            return None
        formatter = HtmlFormatter(
            style=_style_for(theme), noclasses=True, cssclass=HIGHLIGHT_CSS_CLASS
        )
        html = pygments_highlight(code, lexer, formatter)
        return _attach_language_attribute(html, tag)


__all__ = ["PygmentsHighlighter", "SyntaxHighlighter", "check_theme"]
