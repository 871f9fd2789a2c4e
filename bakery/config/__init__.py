"""Load and validate ``bakery.toml`` site configuration.

This subpackage parses the site's ``bakery.toml`` file, rejects unknown keys,
applies defaults (syntax theme, stylesheet options), and produces typed
dataclasses (:class:`SiteConfig`, :class:`SassConfig`) that the build stages
consume. The primary entry point is :func:`load_site_config`.

Examples
--------
>>> from pathlib import Path
>>> from bakery.config import load_site_config
>>> site = load_site_config(Path("site/bakery.toml"))  # doctest: +SKIP
>>> site.base_url  # doctest: +SKIP
'https://example.com/'
"""

from .loader import load_site_config
from .models import SassConfig, SiteConfig, SiteConfigError

__all__ = ["SassConfig", "SiteConfig", "SiteConfigError", "load_site_config"]
