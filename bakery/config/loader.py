"""Load ``bakery.toml`` into typed dataclasses."""

from __future__ import annotations

import tomllib
import typing as typ

from bakery._constants import DEFAULT_THEME
from bakery.errors import SiteConfigError

from .helpers import (
    SITE_KEYS,
    _build_macros,
    _build_sass_config,
    _normalize_base_url,
    _optional_str,
    _reject_unknown_keys,
    _require_table,
)
from .models import SiteConfig

if typ.TYPE_CHECKING:
    from pathlib import Path


def load_site_config(path: Path) -> SiteConfig:
    """Load the TOML configuration describing a bakery site.

    Parameters
    ----------
    path : Path
        Filesystem path to ``bakery.toml``. Relative ``sass.load_paths`` are
        resolved against its parent directory.

    Returns
    -------
    SiteConfig
        Parsed configuration with defaults applied.

    Raises
    ------
    SiteConfigError
        If the file is missing or unreadable, is not valid TOML, contains
        unknown keys, or lacks ``base_url``/``title``.

    Examples
    --------
    >>> from pathlib import Path
    >>> from bakery.config import load_site_config
    >>> config = load_site_config(Path("site/bakery.toml"))  # doctest: +SKIP
    >>> config.theme  # doctest: +SKIP
    'monokai'
    """
    if not path.is_file():
        msg = f"Configuration file '{path}' not found."
        raise SiteConfigError(msg)
    try:
        raw = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        msg = f"Cannot read configuration file '{path}': {exc}"
        raise SiteConfigError(msg) from exc

    _reject_unknown_keys(raw, SITE_KEYS, str(path))
    title = _optional_str(raw.get("title"))
    if title is None:
        msg = "Missing required key 'title'."
        raise SiteConfigError(msg)
    theme = _optional_str(raw.get("theme")) or DEFAULT_THEME

    return SiteConfig(
        base_url=_normalize_base_url(raw.get("base_url")),
        title=title,
        theme=theme,
        macros=_build_macros(raw.get("macros")),
        sass=_build_sass_config(raw.get("sass"), path.parent),
        extra=_require_table(raw.get("extra"), "extra"),
    )


__all__ = ["load_site_config"]
