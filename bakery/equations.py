"""Render LaTeX equation sources into HTML fragments.

The build pipeline only depends on the :class:`EquationRenderer` protocol, so
any renderer that maps ``(source, display_mode, macros)`` to an HTML string
can be injected. :class:`MathMLRenderer` is the default: it expands the
site's macros and converts the result to MathML with ``latex2mathml``.

Example
-------
>>> from bakery.equations import MathMLRenderer
>>> html = MathMLRenderer().render("x^2", False, {})
>>> html.startswith('<span class="math math-inline">')
True
"""

from __future__ import annotations

import re
import typing as typ

from latex2mathml import converter

from .errors import EquationRenderError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

MAX_EXPAND = 1000
CONTROL_SEQUENCE = re.compile(r"\\(?:[A-Za-z]+|.)", re.DOTALL)
PARAMETER = re.compile(r"#([1-9])")


class EquationRenderer(typ.Protocol):
    """Capability turning one equation source into an HTML fragment."""

    def render(
        self, source: str, display_mode: bool, macros: cabc.Mapping[str, str]
    ) -> str:
        """Return HTML for ``source`` or raise ``EquationRenderError``."""
        ...


def _normalize_macros(macros: cabc.Mapping[str, str]) -> dict[str, str]:
    """Return macros keyed by their backslash-prefixed control sequence."""
    return {
        name if name.startswith("\\") else f"\\{name}": str(body)
        for name, body in macros.items()
    }


def _read_group(source: str, pos: int) -> tuple[str, int]:
    """Read one macro argument starting at ``pos``.

    Arguments are either a balanced ``{...}`` group (braces stripped), a
    control sequence, or a single character. Leading whitespace is skipped.
    """
    while pos < len(source) and source[pos].isspace():
        pos += 1
    if pos >= len(source):
        msg = "missing macro argument"
        raise EquationRenderError(source, msg)
    if source[pos] == "{":
        depth = 0
        idx = pos
        while idx < len(source):
            char = source[idx]
            if char == "\\":
                idx += 2
                continue
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return source[pos + 1 : idx], idx + 1
            idx += 1
        msg = "unbalanced braces in macro argument"
        raise EquationRenderError(source, msg)
    control = CONTROL_SEQUENCE.match(source, pos)
    if control:
        return control.group(0), control.end()
    return source[pos], pos + 1


def expand_macros(source: str, macros: cabc.Mapping[str, str]) -> str:
    r"""Expand user macros in ``source``.

    Parameters
    ----------
    source : str
        LaTeX source of a single equation.
    macros : Mapping[str, str]
        Macro name (``"\\RR"`` or ``"RR"``) to replacement text. Replacements
        may reference ``#1`` to ``#9``; that many arguments are consumed after
        the macro name.

    Returns
    -------
    str
        Source with every macro expanded, including macros produced by other
        expansions.

    Raises
    ------
    EquationRenderError
        If an argument is missing or unbalanced, or expansion does not
        terminate within ``MAX_EXPAND`` steps.
    """
    table = _normalize_macros(macros)
    if not table:
        return source
    text = source
    expansions = 0
    pos = 0
    while True:
        match = CONTROL_SEQUENCE.search(text, pos)
        if match is None:
            return text
        name = match.group(0)
        if name not in table:
            pos = match.end()
            continue
        expansions += 1
        if expansions > MAX_EXPAND:
            msg = f"macro expansion limit exceeded while expanding {name}"
            raise EquationRenderError(source, msg)
        body = table[name]
        arity = max((int(ref) for ref in PARAMETER.findall(body)), default=0)
        cursor = match.end()
        arguments: list[str] = []
        for _ in range(arity):
            argument, cursor = _read_group(text, cursor)
            arguments.append(argument)
        expanded = PARAMETER.sub(lambda ref: arguments[int(ref.group(1)) - 1], body)
        text = f"{text[: match.start()]}{expanded}{text[cursor:]}"
        pos = match.start()


class MathMLRenderer:
    """Render equations to MathML wrapped in inline or display containers."""

    inline_class = "math math-inline"
    display_class = "math math-display"

    def render(
        self, source: str, display_mode: bool, macros: cabc.Mapping[str, str]
    ) -> str:
        """Render ``source`` in inline or display mode.

        Parameters
        ----------
        source : str
            Equation source without delimiters; surrounding whitespace is
            ignored.
        display_mode : bool
            ``True`` for standalone display equations.
        macros : Mapping[str, str]
            Macros expanded before conversion.

        Returns
        -------
        str
            ``<span class="math math-inline">`` or
            ``<div class="math math-display">`` wrapping the MathML element.

        Raises
        ------
        EquationRenderError
            If macro expansion or the MathML conversion fails.
        """
        tex = expand_macros(source.strip(), macros)
        display = "block" if display_mode else "inline"
        try:
            mathml = converter.convert(tex, display=display)
        # latex2mathml raises unrelated exception types for malformed input
        except Exception as exc:
            raise EquationRenderError(source, str(exc) or type(exc).__name__) from exc
        if display_mode:
            return f'<div class="{self.display_class}">{mathml}</div>'
        return f'<span class="{self.inline_class}">{mathml}</span>'


__all__ = ["MAX_EXPAND", "EquationRenderer", "MathMLRenderer", "expand_macros"]
