"""The build stages of a bakery site.

A site directory looks like this::

    site/
        bakery.toml
        content/     Markdown pages with front matter
        sass/        SASS/SCSS stylesheets
        static/      files copied verbatim into the output
        templates/   Jinja2 page templates
        target/      generated output (recreated by every build)

Each public method of :class:`Site` is one build stage. The stages share the
``Site`` instance and rely on the orchestrator to run them in dependency
order; none of them locks anything itself.

Examples
--------
>>> from pathlib import Path
>>> from bakery.site import Site
>>> site = Site.load(Path("site"))  # doctest: +SKIP
>>> site.clean(); site.load_pages(); site.render_content()  # doctest: +SKIP
>>> site.render_html()  # doctest: +SKIP
[PosixPath('site/target/index.html'), PosixPath('site/target/blog/hello/index.html')]
"""

from __future__ import annotations

import logging
import shutil
import typing as typ

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ._constants import (
    CONFIG_FILENAME,
    CONTENT_SUBDIR,
    CSS_SUBDIR,
    FEED_FILENAME,
    SASS_SUBDIR,
    STATIC_SUBDIR,
    TARGET_SUBDIR,
    TEMPLATES_SUBDIR,
)
from ._parallel import map_parallel
from .config import load_site_config
from .content import ContentRenderer
from .errors import BakeryError
from .feed import FeedWriter
from .highlight import check_theme
from .pages import Page, load_pages
from .stylesheets import StylesheetBuilder

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .config import SiteConfig
    from .stylesheets import CssCompiler

logger = logging.getLogger(__name__)


class Site:
    """A site directory plus the state its build stages hand to each other."""

    def __init__(
        self,
        site_dir: Path,
        config: SiteConfig,
        *,
        include_drafts: bool = False,
        max_workers: int | None = None,
        renderer: ContentRenderer | None = None,
        css_compiler: CssCompiler | None = None,
    ) -> None:
        """Initialize the site.

        Parameters
        ----------
        site_dir : Path
            Root of the site (the directory holding ``bakery.toml``).
        config : SiteConfig
            Parsed site configuration.
        include_drafts : bool, optional
            Render pages marked ``draft``.
        max_workers : int, optional
            Size of the per-page worker pools.
        renderer : ContentRenderer, optional
            Page body renderer; defaults to one built from ``config``.
        css_compiler : CssCompiler, optional
            Stylesheet compiler; defaults to libsass.
        """
        self.dir = site_dir
        self.config = config
        self.include_drafts = include_drafts
        self.max_workers = max_workers
        self.renderer = renderer or ContentRenderer(
            theme=config.theme, macros=config.macros
        )
        self.stylesheets = StylesheetBuilder(
            sass_dir=self.sass_dir,
            css_dir=self.css_dir,
            config=config.sass,
            compiler=css_compiler,
        )
        self.pages: list[Page] = []

    @classmethod
    def load(cls, site_dir: Path, **kwargs: typ.Any) -> Site:
        """Load ``bakery.toml`` from ``site_dir`` and return the site."""
        return cls(site_dir, load_site_config(site_dir / CONFIG_FILENAME), **kwargs)

    @property
    def target_dir(self) -> Path:
        """Return the output directory."""
        return self.dir / TARGET_SUBDIR

    @property
    def content_dir(self) -> Path:
        """Return the directory holding Markdown pages."""
        return self.dir / CONTENT_SUBDIR

    @property
    def sass_dir(self) -> Path:
        """Return the directory holding stylesheet sources."""
        return self.dir / SASS_SUBDIR

    @property
    def static_dir(self) -> Path:
        """Return the directory copied verbatim into the output."""
        return self.dir / STATIC_SUBDIR

    @property
    def templates_dir(self) -> Path:
        """Return the directory holding Jinja2 page templates."""
        return self.dir / TEMPLATES_SUBDIR

    @property
    def css_dir(self) -> Path:
        """Return the output directory for compiled stylesheets."""
        return self.target_dir / CSS_SUBDIR

    def clean(self) -> Path:
        """Remove the output directory if present and recreate it empty."""
        target = self.target_dir
        if target.exists():
            shutil.rmtree(target)
        target.mkdir(parents=True)
        return target

    def load_pages(self) -> list[Page]:
        """Parse every page's front matter, dropping drafts unless requested."""
        self.pages = load_pages(
            self.content_dir,
            include_drafts=self.include_drafts,
            max_workers=self.max_workers,
        )
        logger.debug("loaded %d pages from %s", len(self.pages), self.content_dir)
        return self.pages

    def render_content(self) -> list[Page]:
        """Render every page body to HTML.

        All pages are rendered before any is updated, so a failure on one page
        leaves every page unrendered.
        """
        check_theme(self.config.theme)
        rendered = map_parallel(
            lambda page: self.renderer.render(page.content, page=page.name),
            self.pages,
            max_workers=self.max_workers,
            label="bakery-content",
        )
        for page, html in zip(self.pages, rendered, strict=True):
            page.content = html
            page.rendered = True
        return self.pages

    def copy_assets(self) -> list[Path]:
        """Mirror ``static/`` into the output directory."""
        static = self.static_dir
        if not static.is_dir():
            logger.debug("no static directory at %s", static)
            return []
        entries = sorted(static.rglob("*"))
        for directory in (path for path in entries if path.is_dir()):
            (self.target_dir / directory.relative_to(static)).mkdir(
                parents=True, exist_ok=True
            )
        files = [path for path in entries if path.is_file()]
        return map_parallel(
            lambda path: shutil.copy2(path, self.target_dir / path.relative_to(static)),
            files,
            max_workers=self.max_workers,
            label="bakery-assets",
        )

    def compile_css(self) -> list[Path]:
        """Compile every configured stylesheet into ``target/css``."""
        return self.stylesheets.compile_all(max_workers=self.max_workers)

    def template_environment(self) -> Environment:
        """Return the Jinja2 environment used for page templates."""
        env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml"]),
        )
        env.globals["sass"] = self.stylesheets
        return env

    def to_context(self) -> dict[str, typ.Any]:
        """Return the ``site`` object exposed to templates."""
        return {
            "config": self.config.to_context(),
            "pages": [page.to_context() for page in self.pages],
        }

    def render_html(self) -> list[Path]:
        """Render each page through its template into ``target/``.

        Raises
        ------
        BakeryError
            If a page has not been through :meth:`render_content`.
        """
        pending = [page.name for page in self.pages if not page.rendered]
        if pending:
            msg = f"Page {pending[0]!r} has not been rendered yet."
            raise BakeryError(msg)
        env = self.template_environment()
        site = self.to_context()
        return map_parallel(
            lambda page: self._write_page(env, page, site),
            self.pages,
            max_workers=self.max_workers,
            label="bakery-html",
        )

    def _write_page(
        self, env: Environment, page: Page, site: dict[str, typ.Any]
    ) -> Path:
        template = env.get_template(page.template)
        html = template.render(**page.to_context(), page=page.to_context(), site=site)
        output_path = self.target_dir / page.output_path
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(html, encoding="utf-8")
        return output_path

    def render_feed(self) -> Path:
        """Write the Atom feed of dated pages."""
        return FeedWriter(self.config).write(
            self.pages, self.target_dir / FEED_FILENAME
        )


__all__ = ["Site"]
