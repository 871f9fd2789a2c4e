"""Rewrite a Markdown event stream to render equations and code.

:class:`MarkdownEventTransformer` forwards every event untouched except at
three points:

* an inline code span wrapped in ``$`` sigils becomes an inline equation;
* a fenced code block with a language tag is swallowed and its text is
  rendered by tag: the reserved equation tags (``latex``/``math``) become a
  display equation, a known language is syntax highlighted, anything else is
  escaped into ``<pre><code>``;
* the matching fence close is swallowed as well.

Code text (inline code, fence bodies and indented blocks) is first passed
through an optional ``verbatim`` mapping so callers that substituted parts of
the source before parsing can show the original text inside code.

Fence tracking is an explicit two-state machine (:class:`Idle` /
:class:`InFence`) threaded through a single ``transform`` call, so every call
is independent and safe to run on many pages at once.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from html import escape

from bakery._constants import EQUATION_FENCE_TAGS, EQUATION_SIGIL
from bakery.errors import BakeryError, MarkdownStructureError

from .events import Event, EventKind, MarkdownItParser

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from markdown_it.token import Token

    from bakery.equations import EquationRenderer
    from bakery.highlight import SyntaxHighlighter

    from .events import MarkdownParser


@dc.dataclass(frozen=True, slots=True)
class Idle:
    """Outside any fenced code block."""


@dc.dataclass(frozen=True, slots=True)
class InFence:
    """Inside a fenced code block.

    An empty ``tag`` marks an untagged fence, which keeps the parser's own
    rendering.
    """

    tag: str


FenceState = Idle | InFence
IDLE = Idle()


def fence_tag(info: str) -> str:
    """Return the language tag of a fence info string.

    The tag is the first word, with any ``,attribute`` suffix removed, so
    ``"rust,no_run"`` and ``"python title=x"`` yield ``"rust"`` and
    ``"python"``.
    """
    words = info.strip().split(maxsplit=1)
    if not words:
        return ""
    return words[0].split(",", 1)[0]


class MarkdownEventTransformer:
    """Render a page's Markdown, intercepting equations and fenced code."""

    def __init__(
        self,
        *,
        equations: EquationRenderer,
        highlighter: SyntaxHighlighter,
        parser: MarkdownParser | None = None,
        equation_tags: cabc.Set[str] = EQUATION_FENCE_TAGS,
        sigil: str = EQUATION_SIGIL,
    ) -> None:
        """Initialize the transformer with its rendering capabilities.

        Parameters
        ----------
        equations : EquationRenderer
            Renderer for inline code equations and equation fences.
        highlighter : SyntaxHighlighter
            Highlighter for fences with a known language tag.
        parser : MarkdownParser, optional
            Event source and serializer; defaults to
            :class:`~bakery.content.events.MarkdownItParser`.
        equation_tags : Set[str], optional
            Fence tags rendered as display equations.
        sigil : str, optional
            Character wrapping inline code that holds an equation.
        """
        self.equations = equations
        self.highlighter = highlighter
        self.parser = parser or MarkdownItParser()
        self.equation_tags = frozenset(tag.lower() for tag in equation_tags)
        self.sigil = sigil

    def transform(
        self,
        markdown_text: str,
        theme: str,
        macros: cabc.Mapping[str, str],
        *,
        verbatim: cabc.Callable[[str], str] | None = None,
    ) -> str:
        """Render ``markdown_text`` to HTML.

        ``verbatim`` maps code text back to what the author wrote; it is
        applied to inline code and fence bodies before they are interpreted.

        Raises
        ------
        EquationRenderError
            If an inline or fenced equation cannot be rendered.
        MarkdownStructureError
            If the parser, the serializer, or the highlighter fails; unknown
            theme names raise the ``HighlightThemeError`` subclass.
        """
        try:
            events = self.parser.parse(markdown_text)
            return self.parser.render(
                self.rewrite(events, theme, macros, verbatim=verbatim)
            )
        except BakeryError:
            raise
        # parser and highlighter are third-party code with no common error base
        except Exception as exc:
            raise MarkdownStructureError(str(exc) or type(exc).__name__) from exc

    def rewrite(
        self,
        events: cabc.Iterable[Event],
        theme: str,
        macros: cabc.Mapping[str, str],
        *,
        verbatim: cabc.Callable[[str], str] | None = None,
    ) -> cabc.Iterator[Event]:
        """Yield ``events`` with the interception points rewritten."""
        restore = verbatim or _identity
        state: FenceState = IDLE
        for event in events:
            state, emitted = self._step(state, event, theme, macros, restore)
            yield from emitted
        if isinstance(state, InFence):
            msg = f"fenced {state.tag!r} block was never closed"
            raise MarkdownStructureError(msg)

    def _step(
        self,
        state: FenceState,
        event: Event,
        theme: str,
        macros: cabc.Mapping[str, str],
        restore: cabc.Callable[[str], str],
    ) -> tuple[FenceState, list[Event]]:
        match state, event.kind:
            case Idle(), EventKind.CODE:
                if not self._is_equation(event.text):
                    return state, [dc.replace(event, text=restore(event.text))]
                source = restore(event.text[len(self.sigil) : -len(self.sigil)])
                html = self.equations.render(source, False, macros)
                return state, [Event.html(html)]
            case Idle(), EventKind.BLOCK if _is_code_block(event):
                token = typ.cast("Token", event.token)
                content = restore(token.content)
                return state, [dc.replace(event, token=token.copy(content=content))]
            case Idle(), EventKind.FENCE_START:
                tag = fence_tag(event.text)
                return InFence(tag), [] if tag else [event]
            case InFence(tag=""), EventKind.TEXT:
                return state, [dc.replace(event, text=restore(event.text))]
            case InFence(tag=tag), EventKind.TEXT:
                text = restore(event.text)
                return state, [self._render_fence(tag, text, theme, macros)]
            case InFence(tag=tag), EventKind.FENCE_END:
                return IDLE, [] if tag else [event]
            case InFence(), _:
                msg = f"unexpected {event.kind.value} event inside a fenced block"
                raise MarkdownStructureError(msg)
            case _:
                return state, [event]

    def _is_equation(self, code: str) -> bool:
        return (
            len(code) >= 2 * len(self.sigil)
            and code.startswith(self.sigil)
            and code.endswith(self.sigil)
        )

    def _render_fence(
        self, tag: str, text: str, theme: str, macros: cabc.Mapping[str, str]
    ) -> Event:
        if tag.lower() in self.equation_tags:
            return Event.html(self.equations.render(text, True, macros))
        highlighted = self.highlighter.highlight(text, tag, theme)
        if highlighted is not None:
            return Event.html(highlighted)
        return Event.html(f"<pre><code>{escape(text, quote=False)}</code></pre>\n")


def _identity(text: str) -> str:
    return text


def _is_code_block(event: Event) -> bool:
    return event.token is not None and event.token.type == "code_block"


__all__ = [
    "IDLE",
    "FenceState",
    "Idle",
    "InFence",
    "MarkdownEventTransformer",
    "fence_tag",
]
