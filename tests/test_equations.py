"""Tests for macro expansion and the MathML equation renderer."""

from __future__ import annotations

import pytest

from bakery.equations import MAX_EXPAND, MathMLRenderer, expand_macros
from bakery.errors import EquationRenderError


def test_expand_macros_without_table_returns_source() -> None:
    assert expand_macros("\\RR^n", {}) == "\\RR^n"


def test_expand_macros_accepts_names_with_or_without_backslash() -> None:
    assert expand_macros("\\RR + \\NN", {"RR": "\\mathbb{R}", "\\NN": "\\mathbb{N}"}) == (
        "\\mathbb{R} + \\mathbb{N}"
    )


def test_expand_macros_does_not_match_longer_control_sequences() -> None:
    assert expand_macros("\\RRR", {"RR": "X"}) == "\\RRR"


def test_expand_macros_substitutes_arguments() -> None:
    macros = {"pair": "\\langle #1, #2 \\rangle"}

    assert expand_macros("\\pair{a}{b_{1}}", macros) == "\\langle a, b_{1} \\rangle"


def test_expand_macros_reads_single_token_arguments() -> None:
    macros = {"sq": "{#1}^2"}

    assert expand_macros("\\sq x + \\sq\\alpha", macros) == "{x}^2 + {\\alpha}^2"


def test_expand_macros_expands_nested_definitions() -> None:
    macros = {"RR": "\\mathbb{R}", "space": "\\RR^{#1}"}

    assert expand_macros("\\space{3}", macros) == "\\mathbb{R}^{3}"


def test_missing_argument_is_an_equation_error() -> None:
    with pytest.raises(EquationRenderError, match="missing macro argument"):
        expand_macros("x + \\pair{a}", {"pair": "#1 #2"})


def test_unbalanced_argument_is_an_equation_error() -> None:
    with pytest.raises(EquationRenderError, match="unbalanced braces"):
        expand_macros("\\sq{x", {"sq": "#1^2"})


def test_recursive_macro_hits_expansion_limit() -> None:
    with pytest.raises(EquationRenderError, match="expansion limit") as excinfo:
        expand_macros("\\loop", {"loop": "a\\loop"})

    assert excinfo.value.source == "\\loop"
    assert MAX_EXPAND > 0


def test_mathml_inline_and_display_markup_differ() -> None:
    renderer = MathMLRenderer()

    inline = renderer.render("N=1", False, {})
    display = renderer.render("N=1", True, {})

    assert inline.startswith('<span class="math math-inline"><math')
    assert display.startswith('<div class="math math-display"><math')
    assert 'display="block"' in display
    assert inline != display


def test_mathml_render_is_deterministic_and_expands_macros() -> None:
    renderer = MathMLRenderer()
    macros = {"RR": "\\mathbb{R}"}

    first = renderer.render("\\RR^2", True, macros)

    assert first == renderer.render("\\RR^2", True, macros)
    assert first == renderer.render("\\mathbb{R}^2", True, {})


def test_malformed_equation_raises_equation_render_error() -> None:
    with pytest.raises(EquationRenderError) as excinfo:
        MathMLRenderer().render("x^", False, {})

    assert excinfo.value.source == "x^"
    assert "x^" in str(excinfo.value)
