r"""Split raw page text into literal runs and LaTeX equation spans.

Two equation forms are recognized in a single left-to-right scan:

* display equations between ``$$`` markers, taken verbatim (newlines
  included);
* inline equations between ``\\(`` and ``\\)``, written with a doubled
  backslash so that the parenthesis survives Markdown escaping.

Block markers are tried before inline markers at every position and the first
close marker wins; equations cannot nest or contain their own close marker.
An open marker without a close marker fails the whole scan.

Example
-------
>>> from bakery.latex import extract
>>> extract("one two $$N=1$$ three")
[Literal(text='one two '), BlockEquation(source='N=1'), Literal(text=' three')]
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from .errors import DelimiterError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .equations import EquationRenderer

BLOCK_START_DELIM = "$$"
BLOCK_END_DELIM = "$$"
INLINE_START_DELIM = "\\\\("
INLINE_END_DELIM = "\\\\)"


@dc.dataclass(frozen=True, slots=True)
class Literal:
    """Passthrough text, opaque to the extractor."""

    text: str

    def delimited(self) -> str:
        """Return the span exactly as it appeared in the source."""
        return self.text


@dc.dataclass(frozen=True, slots=True)
class InlineEquation:
    """Equation source rendered inline (non-display mode)."""

    source: str

    def delimited(self) -> str:
        """Return the equation wrapped in its original inline markers."""
        return f"{INLINE_START_DELIM}{self.source}{INLINE_END_DELIM}"


@dc.dataclass(frozen=True, slots=True)
class BlockEquation:
    """Equation source rendered in display mode."""

    source: str

    def delimited(self) -> str:
        """Return the equation wrapped in its original block markers."""
        return f"{BLOCK_START_DELIM}{self.source}{BLOCK_END_DELIM}"


Span = Literal | InlineEquation | BlockEquation


def _delimited(text: str, pos: int, start: str, end: str) -> tuple[str, int]:
    """Return the content between ``start`` at ``pos`` and the next ``end``.

    The second element is the position just after the close marker.
    """
    content_start = pos + len(start)
    close = text.find(end, content_start)
    if close < 0:
        raise DelimiterError(start, pos, text[pos:])
    return text[content_start:close], close + len(end)


def _next_marker(text: str, pos: int) -> int:
    """Return the position of the next open marker, or ``len(text)``."""
    candidates = [
        found
        for found in (
            text.find(BLOCK_START_DELIM, pos),
            text.find(INLINE_START_DELIM, pos),
        )
        if found >= 0
    ]
    return min(candidates, default=len(text))


def extract(text: str) -> list[Span]:
    """Split ``text`` into ordered literal and equation spans.

    Parameters
    ----------
    text : str
        Raw page body.

    Returns
    -------
    list[Span]
        Spans in document order. Literal spans are never empty; an empty input
        yields an empty list.

    Raises
    ------
    DelimiterError
        If an open marker has no matching close marker. No spans are returned
        in that case.
    """
    spans: list[Span] = []
    pos = 0
    length = len(text)
    while pos < length:
        if text.startswith(BLOCK_START_DELIM, pos):
            source, pos = _delimited(text, pos, BLOCK_START_DELIM, BLOCK_END_DELIM)
            spans.append(BlockEquation(source))
        elif text.startswith(INLINE_START_DELIM, pos):
            source, pos = _delimited(text, pos, INLINE_START_DELIM, INLINE_END_DELIM)
            spans.append(InlineEquation(source))
        else:
            end = _next_marker(text, pos)
            spans.append(Literal(text[pos:end]))
            pos = end
    return spans


def reconstruct(spans: cabc.Iterable[Span]) -> str:
    """Rebuild the original text from ``spans``, markers included."""
    return "".join(span.delimited() for span in spans)


def render_spans(
    spans: cabc.Iterable[Span],
    renderer: EquationRenderer,
    macros: cabc.Mapping[str, str] | None = None,
) -> str:
    """Concatenate literals with rendered equations, preserving span order.

    Raises
    ------
    EquationRenderError
        Propagated from ``renderer`` for the first malformed equation.
    """
    macro_table = dict(macros or {})
    parts: list[str] = []
    for span in spans:
        match span:
            case Literal(text=text):
                parts.append(text)
            case InlineEquation(source=source):
                parts.append(renderer.render(source, False, macro_table))
            case BlockEquation(source=source):
                parts.append(renderer.render(source, True, macro_table))
    return "".join(parts)


__all__ = [
    "BLOCK_END_DELIM",
    "BLOCK_START_DELIM",
    "INLINE_END_DELIM",
    "INLINE_START_DELIM",
    "BlockEquation",
    "InlineEquation",
    "Literal",
    "Span",
    "extract",
    "reconstruct",
    "render_spans",
]
