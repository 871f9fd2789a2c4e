"""Unit tests for LaTeX span extraction and span rendering."""

from __future__ import annotations

import pytest
from conftest import FakeEquationRenderer

from bakery.errors import DelimiterError
from bakery.latex import (
    BlockEquation,
    InlineEquation,
    Literal,
    extract,
    reconstruct,
    render_spans,
)

INLINE_OPEN = "\\\\("
INLINE_CLOSE = "\\\\)"


def test_block_equation_between_literals() -> None:
    assert extract("one two $$N=1$$ three") == [
        Literal("one two "),
        BlockEquation("N=1"),
        Literal(" three"),
    ]


def test_inline_equation_between_literals() -> None:
    text = f"one two {INLINE_OPEN}N=1{INLINE_CLOSE} three"

    assert extract(text) == [
        Literal("one two "),
        InlineEquation("N=1"),
        Literal(" three"),
    ]


def test_block_content_keeps_newlines() -> None:
    assert extract("$$\na = b\n\\\\\nc = d\n$$") == [
        BlockEquation("\na = b\n\\\\\nc = d\n")
    ]


def test_empty_input_yields_no_spans() -> None:
    assert extract("") == []


def test_text_without_markers_is_one_literal() -> None:
    assert extract("costs $5 and (a) \\(b\\)") == [
        Literal("costs $5 and (a) \\(b\\)")
    ]


def test_first_close_marker_wins() -> None:
    assert extract("$$a$$b$$c$$") == [
        BlockEquation("a"),
        Literal("b"),
        BlockEquation("c"),
    ]


def test_block_marker_inside_inline_equation_is_content() -> None:
    text = f"{INLINE_OPEN}x $$ y{INLINE_CLOSE}"

    assert extract(text) == [InlineEquation("x $$ y")]


@pytest.mark.parametrize(
    "text",
    [
        "",
        "plain text",
        "one two $$N=1$$ three",
        f"a {INLINE_OPEN}x{INLINE_CLOSE} b $$y$$ c",
        "$$$$",
        f"{INLINE_OPEN}{INLINE_CLOSE}$$\n\n$$tail",
        "line one\n\n$$\n\\sum_i x_i\n$$\n\nline three\n",
    ],
)
def test_reconstruct_round_trips(text: str) -> None:
    assert reconstruct(extract(text)) == text


@pytest.mark.parametrize(
    ("text", "marker", "offset"),
    [
        ("before $$N=1 never closed", "$$", 7),
        (f"a {INLINE_OPEN}x", INLINE_OPEN, 2),
        (f"$$ok$$ then {INLINE_OPEN}broken", INLINE_OPEN, 12),
        ("$$ok$$ and $$", "$$", 11),
    ],
)
def test_unmatched_marker_fails_whole_scan(
    text: str, marker: str, offset: int
) -> None:
    with pytest.raises(DelimiterError) as excinfo:
        extract(text)

    assert excinfo.value.marker == marker
    assert excinfo.value.offset == offset
    assert excinfo.value.remainder == text[offset:]


def test_delimiter_error_message_names_page() -> None:
    with pytest.raises(DelimiterError) as excinfo:
        extract("x $$unclosed")

    error = excinfo.value.for_page("blog/post")

    assert "blog/post" in str(error)
    assert "$$unclosed" in str(error)


def test_inline_and_display_render_differently() -> None:
    renderer = FakeEquationRenderer()
    inline = render_spans(extract(f"{INLINE_OPEN}N=1{INLINE_CLOSE}"), renderer)
    display = render_spans(extract("$$N=1$$"), renderer)

    assert inline == '<span class="eq-inline">N=1</span>'
    assert display == '<div class="eq-display">N=1</div>'
    assert renderer.calls == [("N=1", False), ("N=1", True)]


def test_render_spans_keeps_literals_in_order() -> None:
    renderer = FakeEquationRenderer()
    spans = extract(f"a $$x$$ b {INLINE_OPEN}y{INLINE_CLOSE} c")

    assert render_spans(spans, renderer) == (
        'a <div class="eq-display">x</div> b <span class="eq-inline">y</span> c'
    )
