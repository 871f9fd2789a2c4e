"""Exception hierarchy shared by the bakery build pipeline.

Page-level failures (``DelimiterError``, ``EquationRenderError``,
``MarkdownStructureError``, ``FrontMatterError``) carry enough context to
locate the offending source. The orchestrator wraps whatever a stage raises in
a ``StageError`` and reports one or more of them through
``AggregatedBuildError``.
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path

SNIPPET_LIMIT = 60


def _snippet(text: str, limit: int = SNIPPET_LIMIT) -> str:
    """Return ``text`` shortened to ``limit`` characters for error messages."""
    if len(text) <= limit:
        return text
    return f"{text[: limit - 3]}..."


class BakeryError(Exception):
    """Base class for every error raised by bakery."""


class DelimiterError(BakeryError):
    """Raised when a LaTeX open marker has no matching close marker.

    Attributes
    ----------
    marker : str
        The open marker that was left unmatched.
    offset : int
        Character offset of the unmatched marker in the scanned text.
    remainder : str
        Unparsed input starting at the unmatched marker.
    page : str or None
        Page name, attached once the error leaves the extractor.
    """

    def __init__(
        self, marker: str, offset: int, remainder: str, page: str | None = None
    ) -> None:
        self.marker = marker
        self.offset = offset
        self.remainder = remainder
        self.page = page
        location = f" in page {page!r}" if page else ""
        msg = (
            f"Invalid LaTeX delimiters{location}: unmatched {marker!r} at offset "
            f"{offset}: {_snippet(remainder)!r}"
        )
        super().__init__(msg)

    def for_page(self, page: str) -> DelimiterError:
        """Return a copy of this error annotated with ``page``."""
        return DelimiterError(self.marker, self.offset, self.remainder, page=page)


class EquationRenderError(BakeryError):
    """Raised when an equation source cannot be rendered."""

    def __init__(
        self, source: str, reason: str = "", page: str | None = None
    ) -> None:
        self.source = source
        self.reason = reason
        self.page = page
        location = f" in page {page!r}" if page else ""
        detail = f" ({reason})" if reason else ""
        msg = f"Invalid LaTeX equation{location}: {_snippet(source)!r}{detail}"
        super().__init__(msg)

    def for_page(self, page: str) -> EquationRenderError:
        """Return a copy of this error annotated with ``page``."""
        return EquationRenderError(self.source, self.reason, page=page)


class MarkdownStructureError(BakeryError):
    """Raised when the Markdown parser or highlighter fails on a page."""

    summary = "Markdown rendering failed"

    def __init__(self, reason: str, page: str | None = None) -> None:
        self.reason = reason
        self.page = page
        location = f" in page {page!r}" if page else ""
        super().__init__(f"{self.summary}{location}: {reason}")

    def for_page(self, page: str) -> MarkdownStructureError:
        """Return a copy of this error annotated with ``page``."""
        return type(self)(self.reason, page=page)


class HighlightThemeError(MarkdownStructureError):
    """Raised when the configured syntax theme does not exist."""

    summary = "Invalid syntax theme"


class FrontMatterError(BakeryError):
    """Raised when a page's metadata block is missing or unparseable."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid front matter in {path}: {reason}")


class StylesheetError(BakeryError):
    """Raised when a SASS/SCSS source fails to compile."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Error compiling {path}: {reason}")


class SiteConfigError(BakeryError, ValueError):
    """Raised when ``bakery.toml`` is missing, invalid, or incomplete."""


class StageError(BakeryError):
    """Failure of a single build stage, wrapping the underlying exception."""

    def __init__(self, stage: str, cause: BaseException) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage}: {cause}")


class AggregatedBuildError(BakeryError):
    """Outward-facing build failure summarizing one or more stage errors.

    Attributes
    ----------
    errors : list[StageError]
        Stage failures ordered by the time each stage finished.
    """

    def __init__(self, errors: typ.Sequence[StageError]) -> None:
        if not errors:
            msg = "AggregatedBuildError requires at least one stage error."
            raise ValueError(msg)
        self.errors = list(errors)
        first = self.errors[0]
        extra = len(self.errors) - 1
        suffix = f" (and {extra} more stage error{'s' if extra > 1 else ''})" if extra else ""
        super().__init__(f"Build failed in {first}{suffix}")

    @property
    def first(self) -> StageError:
        """Return the first stage error in completion order."""
        return self.errors[0]


__all__ = [
    "AggregatedBuildError",
    "BakeryError",
    "DelimiterError",
    "EquationRenderError",
    "FrontMatterError",
    "HighlightThemeError",
    "MarkdownStructureError",
    "SiteConfigError",
    "StageError",
    "StylesheetError",
]
