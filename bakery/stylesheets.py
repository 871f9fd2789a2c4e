"""Compile the site's SASS/SCSS sources into ``target/css``.

Stylesheets reach the output directory two ways: every entry in
``[sass.targets]`` is compiled by the ``compile_css`` stage, and templates may
call ``sass(input, output)`` to compile a stylesheet on demand while the HTML
is rendered. Both paths share one :class:`StylesheetBuilder`, which serializes
writes so the two never clobber the same file.

Examples
--------
>>> from pathlib import Path
>>> from bakery.config import SassConfig
>>> builder = StylesheetBuilder(
...     sass_dir=Path("site/sass"),
...     css_dir=Path("site/target/css"),
...     config=SassConfig(targets={"main.css": Path("main.scss")}),
... )
>>> builder.compile_all()  # doctest: +SKIP
[PosixPath('site/target/css/main.css')]
"""

from __future__ import annotations

import threading
import typing as typ

import sass

from ._constants import CSS_SUBDIR
from ._parallel import map_parallel
from .errors import StylesheetError

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from .config import SassConfig


class CssCompiler(typ.Protocol):
    """Turn one stylesheet source file into CSS text."""

    def compile(
        self, source: Path, *, compressed: bool, load_paths: cabc.Sequence[Path]
    ) -> str:
        """Return the compiled CSS for ``source``."""
        ...


class LibSassCompiler:
    """:class:`CssCompiler` backed by libsass."""

    def compile(
        self, source: Path, *, compressed: bool, load_paths: cabc.Sequence[Path]
    ) -> str:
        """Compile ``source`` with libsass.

        Raises
        ------
        StylesheetError
            If the source is missing or libsass rejects it.
        """
        if not source.is_file():
            raise StylesheetError(source, "file not found")
        try:
            return sass.compile(
                filename=str(source),
                output_style="compressed" if compressed else "expanded",
                include_paths=[str(path) for path in load_paths],
            )
        except sass.CompileError as exc:
            raise StylesheetError(source, str(exc).strip()) from exc


class StylesheetBuilder:
    """Compile configured and template-requested stylesheets."""

    def __init__(
        self,
        *,
        sass_dir: Path,
        css_dir: Path,
        config: SassConfig,
        compiler: CssCompiler | None = None,
    ) -> None:
        self.sass_dir = sass_dir
        self.css_dir = css_dir
        self.config = config
        self.compiler = compiler or LibSassCompiler()
        self._lock = threading.Lock()
        self._guards: dict[str, threading.Lock] = {}
        self._written: set[str] = set()

    def _guard(self, output: str) -> threading.Lock:
        with self._lock:
            return self._guards.setdefault(output, threading.Lock())

    def compile_one(self, source: str | Path, output: str) -> Path:
        """Compile ``source`` (relative to ``sass/``) into ``css/<output>``."""
        with self._guard(output):
            return self._compile(source, output)

    def _compile(self, source: str | Path, output: str) -> Path:
        output_path = self.css_dir / output
        css = self.compiler.compile(
            self.sass_dir / source,
            compressed=self.config.compressed,
            load_paths=[self.sass_dir, *self.config.load_paths],
        )
        with self._lock:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(css, encoding="utf-8")
            self._written.add(output)
        return output_path

    def compile_all(self, *, max_workers: int | None = None) -> list[Path]:
        """Compile every ``[sass.targets]`` entry, creating ``css/`` first."""
        self.css_dir.mkdir(parents=True, exist_ok=True)
        return map_parallel(
            lambda item: self.compile_one(item[1], item[0]),
            sorted(self.config.targets.items()),
            max_workers=max_workers,
            label="bakery-sass",
        )

    def __call__(self, input: str, output: str) -> str:  # noqa: A002 - template keyword
        """Template function: compile ``input`` once and return its URL path."""
        with self._guard(output):
            with self._lock:
                done = output in self._written
            if not done:
                self._compile(input, output)
        return f"/{CSS_SUBDIR}/{output}"


__all__ = ["CssCompiler", "LibSassCompiler", "StylesheetBuilder"]
