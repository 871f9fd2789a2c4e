"""Typed dataclasses describing bakery site configuration structures."""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

from bakery._constants import DEFAULT_THEME
from bakery.errors import SiteConfigError


@dc.dataclass(slots=True)
class SassConfig:
    """Stylesheets compiled into ``target/css``.

    Attributes
    ----------
    compressed : bool
        Emit compressed CSS instead of the expanded style.
    targets : dict[str, Path]
        Output CSS filename mapped to its SCSS source, relative to ``sass/``.
    load_paths : list[Path]
        Extra include directories searched by ``@use``/``@import``.
    """

    compressed: bool = False
    targets: dict[str, Path] = dc.field(default_factory=dict)
    load_paths: list[Path] = dc.field(default_factory=list)


@dc.dataclass(slots=True)
class SiteConfig:
    """Site-wide settings loaded from ``bakery.toml``."""

    base_url: str
    title: str
    theme: str = DEFAULT_THEME
    macros: dict[str, str] = dc.field(default_factory=dict)
    sass: SassConfig = dc.field(default_factory=SassConfig)
    extra: dict[str, typ.Any] = dc.field(default_factory=dict)

    def to_context(self) -> dict[str, typ.Any]:
        """Return the template-facing view of the config (stylesheets omitted)."""
        return {
            "base_url": self.base_url,
            "title": self.title,
            "theme": self.theme,
            "macros": dict(self.macros),
            "extra": dict(self.extra),
        }


__all__ = ["SassConfig", "SiteConfig", "SiteConfigError"]
