"""Turn one page's raw Markdown body into HTML.

Rendering runs in three steps: LaTeX spans are extracted and rendered, each
rendered equation is swapped for an inert placeholder while the Markdown is
transformed, and the placeholders are finally replaced with the equation
markup. Placeholders keep the Markdown parser from reinterpreting characters
inside the generated MathML. Code that happens to contain equation markers
shows the original marked-up source rather than a rendered equation.
"""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ

from bakery.equations import MathMLRenderer
from bakery.errors import DelimiterError, EquationRenderError, MarkdownStructureError
from bakery.highlight import PygmentsHighlighter
from bakery.latex import BlockEquation, InlineEquation, extract, render_spans

from .transformer import MarkdownEventTransformer

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from bakery.equations import EquationRenderer
    from bakery.highlight import SyntaxHighlighter

    from .events import MarkdownParser

PLACEHOLDER_TEMPLATE = "\x02bakery-math:{index}\x03"
PLACEHOLDER_PATTERN = re.compile("\x02bakery-math:(\\d+)\x03")
PARAGRAPH_PLACEHOLDER_PATTERN = re.compile("<p>\x02bakery-math:(\\d+)\x03</p>\n?")


@dc.dataclass(frozen=True, slots=True)
class _StashedEquation:
    html: str
    display: bool
    source: str


class _EquationStash:
    """Equation renderer that hides each rendering behind a placeholder."""

    def __init__(self, renderer: EquationRenderer) -> None:
        self.renderer = renderer
        self.entries: list[_StashedEquation] = []

    def render(
        self, source: str, display_mode: bool, macros: cabc.Mapping[str, str]
    ) -> str:
        html = self.renderer.render(source, display_mode, macros)
        span = BlockEquation(source) if display_mode else InlineEquation(source)
        placeholder = PLACEHOLDER_TEMPLATE.format(index=len(self.entries))
        self.entries.append(_StashedEquation(html, display_mode, span.delimited()))
        return placeholder

    def verbatim(self, text: str) -> str:
        """Put the delimited equation source back in place of placeholders."""
        return PLACEHOLDER_PATTERN.sub(
            lambda match: self.entries[int(match.group(1))].source, text
        )


class ContentRenderer:
    """Render page bodies with shared theme, macros, and renderers.

    One instance is shared by every worker rendering a site; ``render`` keeps
    all of its state local to the call.
    """

    def __init__(
        self,
        *,
        theme: str,
        macros: cabc.Mapping[str, str] | None = None,
        equations: EquationRenderer | None = None,
        highlighter: SyntaxHighlighter | None = None,
        parser: MarkdownParser | None = None,
    ) -> None:
        self.theme = theme
        self.macros = dict(macros or {})
        self.equations = equations or MathMLRenderer()
        self.transformer = MarkdownEventTransformer(
            equations=self.equations,
            highlighter=highlighter or PygmentsHighlighter(),
            parser=parser,
        )

    def render(self, text: str, page: str | None = None) -> str:
        """Render ``text`` to HTML.

        Parameters
        ----------
        text : str
            Raw Markdown body with embedded LaTeX.
        page : str, optional
            Page name attached to any error for context.

        Returns
        -------
        str
            Rendered HTML.

        Raises
        ------
        DelimiterError
            If a LaTeX open marker is unmatched.
        EquationRenderError
            If an equation cannot be rendered.
        MarkdownStructureError
            If Markdown transformation or highlighting fails.
        """
        stash = _EquationStash(self.equations)
        try:
            markdown_text = render_spans(extract(text), stash, self.macros)
            html = self.transformer.transform(
                markdown_text, self.theme, self.macros, verbatim=stash.verbatim
            )
        except (DelimiterError, EquationRenderError, MarkdownStructureError) as exc:
            if page is None:
                raise
            raise exc.for_page(page) from exc
        return _restore_equations(html, stash.entries)


def _restore_equations(html: str, stash: cabc.Sequence[_StashedEquation]) -> str:
    """Replace equation placeholders in ``html`` with rendered markup."""
    if not stash:
        return html

    def _paragraph(match: re.Match[str]) -> str:
        equation = stash[int(match.group(1))]
        if not equation.display:
            return match.group(0)
        return f"{equation.html}\n"

    def _inline(match: re.Match[str]) -> str:
        return stash[int(match.group(1))].html

    html = PARAGRAPH_PLACEHOLDER_PATTERN.sub(_paragraph, html)
    return PLACEHOLDER_PATTERN.sub(_inline, html)


__all__ = ["PLACEHOLDER_TEMPLATE", "ContentRenderer"]
