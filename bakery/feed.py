"""Render the site's Atom feed.

Only pages with a ``date`` become feed entries; they are listed newest first.
Entry content is the page's rendered HTML, escaped into an
``<content type="html">`` element.

Examples
--------
>>> from pathlib import Path
>>> from bakery.feed import FeedWriter
>>> FeedWriter(config).write(pages, Path("site/target/atom.xml"))  # doctest: +SKIP
PosixPath('site/target/atom.xml')
"""

from __future__ import annotations

import datetime as dt
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from ._constants import FEED_FILENAME

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .config import SiteConfig
    from .pages import Page

FEED_TEMPLATE = "atom.xml.jinja"


def atom_date(value: dt.datetime) -> str:
    """Format ``value`` as an RFC 3339 timestamp in UTC."""
    return value.astimezone(dt.UTC).isoformat(timespec="seconds").replace("+00:00", "Z")


def feed_entries(
    pages: cabc.Iterable[Page], base_url: str
) -> list[dict[str, typ.Any]]:
    """Return template entries for dated pages, newest first."""
    dated = [page for page in pages if page.date is not None]
    dated.sort(key=lambda page: (page.date, page.name), reverse=True)
    return [
        {
            "title": page.title,
            "description": page.description,
            "url": f"{base_url}{page.url_path}",
            "date": page.date,
            "content": page.content,
        }
        for page in dated
    ]


class FeedWriter:
    """Write ``atom.xml`` for a site."""

    def __init__(
        self, config: SiteConfig, *, templates_dir: Path | None = None
    ) -> None:
        self.config = config
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["atom_date"] = atom_date
        self.template = self.env.get_template(FEED_TEMPLATE)

    def render(self, pages: cabc.Iterable[Page]) -> str:
        """Return the feed document for ``pages``."""
        entries = feed_entries(pages, self.config.base_url)
        updated = entries[0]["date"] if entries else dt.datetime.now(dt.UTC)
        return self.template.render(
            site=self.config.to_context(),
            feed_url=f"{self.config.base_url}{FEED_FILENAME}",
            entries=entries,
            updated=updated,
        )

    def write(self, pages: cabc.Iterable[Page], output_path: Path) -> Path:
        """Render the feed and write it to ``output_path``."""
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.render(pages), encoding="utf-8")
        return output_path


__all__ = ["FeedWriter", "atom_date", "feed_entries"]
