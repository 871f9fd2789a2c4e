"""Page records and the front-matter loader.

Every ``*.md`` file under ``content/`` becomes one :class:`Page`. A file must
start with a metadata block fenced by ``---`` (YAML, or TOML when the block is
not a YAML mapping) or ``+++`` (TOML)::

    ---
    title: Hello
    description: First post
    template: post.html
    date: 2024-05-01
    ---
    Body text with $$E=mc^2$$.

The page name is the file path relative to ``content/`` with the extension
removed (``blog/hello.md`` becomes ``blog/hello``). A line that is exactly
``<!-- more -->`` marks the end of the page excerpt.
"""

from __future__ import annotations

import contextlib
import dataclasses as dc
import datetime as dt
import tomllib
import typing as typ
from pathlib import Path, PurePosixPath

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ._constants import EXCERPT_SEPARATOR, INDEX_HTML, INDEX_PAGE, MARKDOWN_EXT
from ._parallel import map_parallel
from .config.helpers import _parse_timestamp
from .errors import FrontMatterError

YAML_FENCE = "---"
TOML_FENCE = "+++"
REQUIRED_KEYS = ("title", "description", "template")
RESERVED_KEYS = frozenset({*REQUIRED_KEYS, "date", "draft"})


@dc.dataclass(slots=True)
class Page:
    """One unit of site content.

    Attributes
    ----------
    title : str
        Page title from the front matter.
    description : str
        Short summary from the front matter.
    template : str
        Template path, relative to ``templates/``.
    name : str
        Slug inferred from the file path (``"index"`` for the root page).
    content : str
        Raw Markdown until the content stage runs, rendered HTML afterwards.
    date : datetime or None
        Publication timestamp in UTC; only dated pages enter the feed.
    draft : bool
        Draft pages are skipped unless drafts are enabled.
    excerpt : str or None
        Raw Markdown preceding the ``<!-- more -->`` marker, if any.
    extra : dict[str, Any]
        Front-matter keys not covered by the fields above.
    source_path : Path or None
        File the page was loaded from.
    rendered : bool
        ``True`` once ``content`` holds HTML.
    """

    title: str
    description: str
    template: str
    name: str
    content: str
    date: dt.datetime | None = None
    draft: bool = False
    excerpt: str | None = None
    extra: dict[str, typ.Any] = dc.field(default_factory=dict)
    source_path: Path | None = dc.field(default=None, repr=False)
    rendered: bool = False

    @property
    def output_path(self) -> PurePosixPath:
        """Return the page's HTML path relative to the output directory."""
        if self.name == INDEX_PAGE:
            return PurePosixPath(INDEX_HTML)
        return PurePosixPath(self.name) / INDEX_HTML

    @property
    def url_path(self) -> str:
        """Return the site-relative URL path of the rendered page."""
        if self.name == INDEX_PAGE:
            return ""
        return f"{self.name}/"

    def to_context(self) -> dict[str, typ.Any]:
        """Return the template-facing view of the page."""
        return {
            "title": self.title,
            "description": self.description,
            "template": self.template,
            "name": self.name,
            "content": self.content,
            "date": self.date,
            "draft": self.draft,
            "excerpt": self.excerpt,
            "extra": self.extra,
            "path": self.url_path,
        }


def split_front_matter(text: str, path: Path) -> tuple[dict[str, typ.Any], str]:
    """Split ``text`` into parsed metadata and the remaining body.

    Raises
    ------
    FrontMatterError
        If the block is missing, unterminated, unparseable, or not a mapping.
    """
    lines = text.removeprefix("\ufeff").splitlines(keepends=True)
    fence = lines[0].strip() if lines else ""
    if fence not in (YAML_FENCE, TOML_FENCE):
        msg = f"file must start with a {YAML_FENCE!r} or {TOML_FENCE!r} front matter block"
        raise FrontMatterError(path, msg)

    for idx in range(1, len(lines)):
        if lines[idx].strip() == fence:
            header = "".join(lines[1:idx])
            body = "".join(lines[idx + 1 :])
            break
    else:
        msg = f"front matter is not closed with {fence!r}"
        raise FrontMatterError(path, msg)

    data = _load_dashed(header, path) if fence == YAML_FENCE else _load_toml(header, path)
    return data, body


def _load_yaml(header: str, path: Path) -> dict[str, typ.Any]:
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        loaded = loader.load(header)
    except YAMLError as exc:
        raise FrontMatterError(path, f"invalid YAML: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        msg = "front matter must be a mapping"
        raise FrontMatterError(path, msg)
    return dict(loaded)


def _load_toml(header: str, path: Path) -> dict[str, typ.Any]:
    try:
        return tomllib.loads(header)
    except tomllib.TOMLDecodeError as exc:
        raise FrontMatterError(path, f"invalid TOML: {exc}") from exc


def _load_dashed(header: str, path: Path) -> dict[str, typ.Any]:
    """Load a ``---`` block as YAML, falling back to TOML.

    The YAML error is reported when neither format yields a mapping.
    """
    try:
        return _load_yaml(header, path)
    except FrontMatterError:
        with contextlib.suppress(tomllib.TOMLDecodeError):
            return tomllib.loads(header)
        raise


def _split_excerpt(body: str) -> str | None:
    """Return the text before the excerpt marker line, if present."""
    lines = body.splitlines(keepends=True)
    for idx, line in enumerate(lines):
        if line.strip() == EXCERPT_SEPARATOR:
            return "".join(lines[:idx]).strip() or None
    return None


def page_name(path: Path, content_dir: Path) -> str:
    """Infer the page name from its path below ``content_dir``."""
    return path.relative_to(content_dir).with_suffix("").as_posix()


def build_page(
    data: typ.Mapping[str, typ.Any], body: str, *, name: str, path: Path
) -> Page:
    """Validate parsed metadata and assemble a :class:`Page`."""
    values: dict[str, str] = {}
    for key in REQUIRED_KEYS:
        value = data.get(key)
        if value is None:
            raise FrontMatterError(path, f"missing required key {key!r}")
        if not isinstance(value, str):
            raise FrontMatterError(path, f"{key!r} must be a string")
        values[key] = value

    date = None
    raw_date = data.get("date")
    if raw_date is not None:
        date = _parse_timestamp(raw_date)
        if date is None:
            raise FrontMatterError(path, f"invalid date {raw_date!r}")

    draft = data.get("draft", False)
    if not isinstance(draft, bool):
        raise FrontMatterError(path, "'draft' must be a boolean")

    return Page(
        title=values["title"],
        description=values["description"],
        template=values["template"],
        name=name,
        content=body,
        date=date,
        draft=draft,
        excerpt=_split_excerpt(body),
        extra={key: value for key, value in data.items() if key not in RESERVED_KEYS},
        source_path=path,
    )


def load_page(path: Path, content_dir: Path) -> Page:
    """Read and parse one page file.

    Raises
    ------
    FrontMatterError
        If the file cannot be read or its metadata is invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FrontMatterError(path, f"cannot read file: {exc}") from exc
    data, body = split_front_matter(text, path)
    return build_page(data, body, name=page_name(path, content_dir), path=path)


def discover_pages(content_dir: Path) -> list[Path]:
    """Return every Markdown file below ``content_dir`` in sorted order."""
    if not content_dir.is_dir():
        msg = f"Content directory '{content_dir}' not found."
        raise FileNotFoundError(msg)
    return sorted(
        path
        for path in content_dir.rglob(f"*{MARKDOWN_EXT}")
        if path.is_file()
    )


def load_pages(
    content_dir: Path, *, include_drafts: bool = False, max_workers: int | None = None
) -> list[Page]:
    """Load every page under ``content_dir`` in parallel.

    Parameters
    ----------
    content_dir : Path
        The site's ``content`` directory.
    include_drafts : bool, optional
        Keep pages whose front matter sets ``draft = true``.
    max_workers : int, optional
        Size of the worker pool; defaults to the executor's choice.

    Returns
    -------
    list[Page]
        Pages in path order, drafts removed unless requested.

    Raises
    ------
    FrontMatterError
        For the first malformed page in path order; drafts are validated too.
    FileNotFoundError
        If ``content_dir`` does not exist.
    """
    paths = discover_pages(content_dir)
    pages = map_parallel(
        lambda path: load_page(path, content_dir),
        paths,
        max_workers=max_workers,
        label="bakery-load",
    )
    return [page for page in pages if include_drafts or not page.draft]


__all__ = [
    "Page",
    "build_page",
    "discover_pages",
    "load_page",
    "load_pages",
    "page_name",
    "split_front_matter",
]
