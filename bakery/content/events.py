"""Markdown event stream built on ``markdown-it-py`` tokens.

``markdown-it-py`` produces a flat list of block tokens whose ``inline``
tokens carry child tokens. :func:`iter_events` flattens that list into a
single forward-only stream of :class:`Event` values, expanding every fenced
code block into ``FENCE_START`` / ``TEXT`` / ``FENCE_END``. The stream can be
rewritten freely as long as containers stay balanced; :func:`render_events`
rebuilds the token list from the rewritten events and serializes it with the
markdown-it HTML renderer.

Example
-------
>>> from bakery.content.events import MarkdownItParser
>>> parser = MarkdownItParser()
>>> parser.render(parser.parse("Hello *world*"))
'<p>Hello <em>world</em></p>\\n'
"""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ

from markdown_it import MarkdownIt
from markdown_it.token import Token

from bakery.errors import MarkdownStructureError

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class EventKind(enum.Enum):
    """Categories of Markdown events."""

    BLOCK = "block"
    INLINE_START = "inline_start"
    INLINE_END = "inline_end"
    TEXT = "text"
    CODE = "code"
    INLINE = "inline"
    FENCE_START = "fence_start"
    FENCE_END = "fence_end"
    HTML = "html"


@dc.dataclass(frozen=True, slots=True)
class Event:
    """One Markdown event.

    Attributes
    ----------
    kind : EventKind
        Event category.
    text : str
        Text payload: run text for ``TEXT``, code for ``CODE``, the info
        string for ``FENCE_START``/``FENCE_END``, markup for ``HTML``.
    token : Token or None
        Underlying markdown-it token for passthrough events; ``None`` for
        events synthesized by a rewrite.
    """

    kind: EventKind
    text: str = ""
    token: Token | None = dc.field(default=None, compare=False, repr=False)

    @classmethod
    def html(cls, markup: str) -> Event:
        """Build a raw HTML event emitted verbatim by the serializer."""
        return cls(EventKind.HTML, markup)


class MarkdownParser(typ.Protocol):
    """Capability turning Markdown into events and events into HTML."""

    def parse(self, text: str) -> cabc.Iterator[Event]:
        """Yield events for ``text`` in document order."""
        ...

    def render(self, events: cabc.Iterable[Event]) -> str:
        """Serialize ``events`` into HTML."""
        ...


def create_markdown_it() -> MarkdownIt:
    """Return the CommonMark parser used for pages (raw HTML, tables, strikethrough)."""
    return MarkdownIt("commonmark", {"html": True}).enable(["table", "strikethrough"])


def iter_events(tokens: cabc.Iterable[Token]) -> cabc.Iterator[Event]:
    """Flatten markdown-it ``tokens`` into a forward-only event stream."""
    for token in tokens:
        if token.type == "inline":
            yield Event(EventKind.INLINE_START, token=token)
            for child in token.children or []:
                if child.type == "text":
                    yield Event(EventKind.TEXT, child.content, child)
                elif child.type == "code_inline":
                    yield Event(EventKind.CODE, child.content, child)
                else:
                    yield Event(EventKind.INLINE, token=child)
            yield Event(EventKind.INLINE_END, token=token)
        elif token.type == "fence":
            yield Event(EventKind.FENCE_START, token.info, token)
            yield Event(EventKind.TEXT, token.content)
            yield Event(EventKind.FENCE_END, token.info, token)
        else:
            yield Event(EventKind.BLOCK, token=token)


def _require_token(event: Event) -> Token:
    if event.token is None:
        msg = f"{event.kind.value} event has no source token"
        raise MarkdownStructureError(msg)
    return event.token


class _TokenBuilder:
    """Rebuild a markdown-it token list from an event stream."""

    def __init__(self) -> None:
        self.tokens: list[Token] = []
        self._inline: Token | None = None
        self._fence: Token | None = None
        self._fence_text: list[str] = []

    def _append(self, token: Token) -> None:
        if self._inline is not None:
            typ.cast("list[Token]", self._inline.children).append(token)
        else:
            self.tokens.append(token)

    def feed(self, event: Event) -> None:
        if self._fence is not None and event.kind is not EventKind.FENCE_END:
            if event.kind is not EventKind.TEXT:
                msg = f"unexpected {event.kind.value} event inside a code block"
                raise MarkdownStructureError(msg)
            self._fence_text.append(event.text)
            return
        match event.kind:
            case EventKind.INLINE_START:
                if self._inline is not None:
                    msg = "nested inline container"
                    raise MarkdownStructureError(msg)
                self._inline = _require_token(event).copy(children=[])
            case EventKind.INLINE_END:
                if self._inline is None:
                    msg = "inline container closed before it was opened"
                    raise MarkdownStructureError(msg)
                self.tokens.append(self._inline)
                self._inline = None
            case EventKind.FENCE_START:
                self._fence = _require_token(event)
                self._fence_text = []
            case EventKind.FENCE_END:
                if self._fence is None:
                    msg = "code block closed before it was opened"
                    raise MarkdownStructureError(msg)
                self.tokens.append(self._fence.copy(content="".join(self._fence_text)))
                self._fence = None
            case EventKind.TEXT:
                source = event.token
                if source is not None and self._inline is not None:
                    self._append(source.copy(content=event.text))
                else:
                    self._append(Token("text", "", 0, content=event.text))
            case EventKind.CODE:
                source = event.token
                if source is not None:
                    self._append(source.copy(content=event.text))
                else:
                    self._append(
                        Token("code_inline", "code", 0, content=event.text, markup="`")
                    )
            case EventKind.HTML:
                kind = "html_inline" if self._inline is not None else "html_block"
                self._append(Token(kind, "", 0, content=event.text))
            case EventKind.BLOCK | EventKind.INLINE:
                self._append(_require_token(event))

    def finish(self) -> list[Token]:
        if self._inline is not None or self._fence is not None:
            msg = "event stream ended inside an open container"
            raise MarkdownStructureError(msg)
        return self.tokens


def render_events(events: cabc.Iterable[Event], md: MarkdownIt) -> str:
    """Serialize ``events`` to HTML with the renderer of ``md``.

    Raises
    ------
    MarkdownStructureError
        If inline containers or code blocks in ``events`` are unbalanced.
    """
    builder = _TokenBuilder()
    for event in events:
        builder.feed(event)
    return md.renderer.render(builder.finish(), md.options, {})


class MarkdownItParser:
    """Default :class:`MarkdownParser` backed by ``markdown-it-py``."""

    def __init__(self, md: MarkdownIt | None = None) -> None:
        self.md = md or create_markdown_it()

    def parse(self, text: str) -> cabc.Iterator[Event]:
        """Parse ``text`` and yield its events."""
        return iter_events(self.md.parse(text, {}))

    def render(self, events: cabc.Iterable[Event]) -> str:
        """Serialize ``events`` into HTML."""
        return render_events(events, self.md)


__all__ = [
    "Event",
    "EventKind",
    "MarkdownItParser",
    "MarkdownParser",
    "create_markdown_it",
    "iter_events",
    "render_events",
]
