"""Markdown event streaming, rewriting, and per-page content rendering."""

from .events import Event, EventKind, MarkdownItParser, MarkdownParser
from .pipeline import ContentRenderer
from .transformer import InFence, Idle, MarkdownEventTransformer, fence_tag

__all__ = [
    "ContentRenderer",
    "Event",
    "EventKind",
    "Idle",
    "InFence",
    "MarkdownEventTransformer",
    "MarkdownItParser",
    "MarkdownParser",
    "fence_tag",
]
