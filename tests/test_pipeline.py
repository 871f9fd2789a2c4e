"""Tests for the per-page content renderer."""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup
from conftest import FakeEquationRenderer, FakeHighlighter

from bakery.content import ContentRenderer
from bakery.errors import (
    DelimiterError,
    EquationRenderError,
    HighlightThemeError,
    MarkdownStructureError,
)


@pytest.fixture
def renderer(
    equations: FakeEquationRenderer, highlighter: FakeHighlighter
) -> ContentRenderer:
    return ContentRenderer(
        theme="monokai", equations=equations, highlighter=highlighter
    )


def test_display_equation_paragraph_is_unwrapped(renderer: ContentRenderer) -> None:
    html = renderer.render("Before.\n\n$$a_1 * b_2$$\n\nAfter.\n")

    assert html == (
        "<p>Before.</p>\n"
        '<div class="eq-display">a_1 * b_2</div>\n'
        "<p>After.</p>\n"
    )


def test_equation_source_is_hidden_from_markdown(renderer: ContentRenderer) -> None:
    html = renderer.render("Take \\\\(*a* _b_ `c`\\\\) now.\n")

    assert html == '<p>Take <span class="eq-inline">*a* _b_ `c`</span> now.</p>\n'


def test_display_equation_inside_text_stays_in_paragraph(
    renderer: ContentRenderer,
) -> None:
    html = renderer.render("so $$x$$ holds\n")

    assert html == '<p>so <div class="eq-display">x</div> holds</p>\n'


def test_multiline_block_equation_spans_blank_lines(
    renderer: ContentRenderer, equations: FakeEquationRenderer
) -> None:
    html = renderer.render("$$\na\n\nb\n$$\n")

    assert equations.calls == [("\na\n\nb\n", True)]
    assert html == '<div class="eq-display">\na\n\nb\n</div>\n'


def test_all_interception_points_in_one_page(renderer: ContentRenderer) -> None:
    text = (
        "# Notes\n\n"
        "Inline `$x$` and \\\\(y\\\\).\n\n"
        "```python\nprint(1)\n```\n\n"
        "```math\nz\n```\n"
    )

    soup = BeautifulSoup(renderer.render(text), "html.parser")

    assert soup.h1.get_text() == "Notes"
    assert [span.get_text() for span in soup.select("span.eq-inline")] == ["x", "y"]
    assert soup.select_one("pre.hl")["data-tag"] == "python"
    assert soup.select_one("div.eq-display").get_text() == "z\n"


def test_errors_are_annotated_with_page_name(highlighter: FakeHighlighter) -> None:
    renderer = ContentRenderer(
        theme="monokai",
        equations=FakeEquationRenderer(fail_on="bad"),
        highlighter=highlighter,
    )

    with pytest.raises(DelimiterError, match="blog/one"):
        renderer.render("open $$ never closed", page="blog/one")
    with pytest.raises(EquationRenderError, match="blog/two") as excinfo:
        renderer.render("$$bad$$", page="blog/two")
    assert excinfo.value.source == "bad"
    with pytest.raises(EquationRenderError, match="blog/three"):
        renderer.render("`$bad$`", page="blog/three")


def test_theme_error_keeps_its_type_when_annotated(
    equations: FakeEquationRenderer,
) -> None:
    renderer = ContentRenderer(theme="no-such-theme", equations=equations)

    with pytest.raises(HighlightThemeError, match="index") as excinfo:
        renderer.render("```python\nx = 1\n```\n", page="index")

    assert isinstance(excinfo.value, MarkdownStructureError)
    assert excinfo.value.page == "index"


def test_default_renderers_produce_mathml_and_pygments() -> None:
    renderer = ContentRenderer(theme="monokai", macros={"RR": "\\mathbb{R}"})
    text = "Let \\\\(x \\in \\RR\\\\).\n\n$$x^2$$\n\n```python\ndef f():\n    pass\n```\n"

    soup = BeautifulSoup(renderer.render(text), "html.parser")

    inline = soup.select_one("p span.math.math-inline")
    assert inline is not None
    assert inline.find("math") is not None
    display = soup.select_one("div.math.math-display")
    assert display is not None
    assert display.parent.name != "p"
    highlighted = soup.select_one("div.highlight")
    assert highlighted["data-language"] == "python"
    assert "def" in highlighted.get_text()


@pytest.mark.parametrize(
    ("text", "selector", "expected"),
    [
        ("```python\nx = $$a$$ + 1\n```\n", "pre.hl", "x = $$a$$ + 1\n"),
        ("```nosuchlang\nx = $$a$$\n```\n", "pre code", "x = $$a$$\n"),
        ("```\ny = \\\\(b\\\\)\n```\n", "pre code", "y = \\\\(b\\\\)\n"),
        ("    z = $$c$$\n", "pre code", "z = $$c$$\n"),
        ("Call `f($$a$$)` here.\n", "p code", "f($$a$$)"),
    ],
)
def test_markers_inside_code_keep_their_source(
    renderer: ContentRenderer, text: str, selector: str, expected: str
) -> None:
    html = renderer.render(text)

    assert "\x02" not in html
    assert "bakery-math" not in html
    soup = BeautifulSoup(html, "html.parser")
    assert soup.select_one(selector).get_text() == expected
    assert soup.select_one(".eq-display, .eq-inline") is None


def test_inline_code_equation_survives_markers_elsewhere(
    renderer: ContentRenderer,
) -> None:
    html = renderer.render("`$x$` and `$$y$$` then $$z$$\n")

    soup = BeautifulSoup(html, "html.parser")
    assert soup.select_one("span.eq-inline").get_text() == "x"
    assert soup.select_one("code").get_text() == "$$y$$"
    assert soup.select_one("div.eq-display").get_text() == "z"


def test_highlighted_fence_shows_markers_with_pygments() -> None:
    renderer = ContentRenderer(theme="monokai")

    html = renderer.render("```python\nx = $$a$$ + 1\n```\n")

    assert "\x02" not in html
    highlighted = BeautifulSoup(html, "html.parser").select_one("div.highlight")
    assert "x = $$a$$ + 1" in highlighted.get_text()
    assert highlighted.find("math") is None
