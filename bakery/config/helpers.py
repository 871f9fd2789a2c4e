"""Utility helpers shared by the bakery configuration and page loaders."""

from __future__ import annotations

import datetime as dt
import typing as typ
from pathlib import Path
from urllib.parse import urlsplit

from bakery.errors import SiteConfigError

from .models import SassConfig

SITE_KEYS = frozenset({"base_url", "title", "theme", "macros", "sass", "extra"})
SASS_KEYS = frozenset({"compressed", "targets", "load_paths"})


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _reject_unknown_keys(
    payload: typ.Mapping[str, typ.Any], allowed: frozenset[str], section: str
) -> None:
    """Raise ``SiteConfigError`` naming the first key outside ``allowed``."""
    unknown = sorted(set(payload) - allowed)
    if unknown:
        msg = f"Unknown key {unknown[0]!r} in {section}."
        raise SiteConfigError(msg)


def _require_table(value: object, section: str) -> dict[str, typ.Any]:
    """Return ``value`` as a dict, treating ``None`` as empty."""
    match value:
        case None:
            return {}
        case dict():
            return dict(value)
        case _:
            msg = f"[{section}] must be a table."
            raise SiteConfigError(msg)


def _normalize_base_url(value: object) -> str:
    """Validate an absolute http(s) URL and ensure it ends with a slash."""
    text = _optional_str(value)
    if text is None:
        msg = "Missing required key 'base_url'."
        raise SiteConfigError(msg)
    parsed = urlsplit(text)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        msg = f"base_url must be an absolute http(s) URL, got {text!r}."
        raise SiteConfigError(msg)
    if not text.endswith("/"):
        return f"{text}/"
    return text


def _build_macros(payload: object) -> dict[str, str]:
    """Build the LaTeX macro table from the ``[macros]`` section."""
    table = _require_table(payload, "macros")
    return {str(name): str(body) for name, body in table.items()}


def _build_sass_config(payload: object, site_dir: Path) -> SassConfig:
    """Build a SassConfig, resolving load paths against ``site_dir``."""
    table = _require_table(payload, "sass")
    _reject_unknown_keys(table, SASS_KEYS, "[sass]")
    compressed = table.get("compressed", False)
    if not isinstance(compressed, bool):
        msg = "sass.compressed must be a boolean."
        raise SiteConfigError(msg)
    targets = {
        str(output): Path(str(source))
        for output, source in _require_table(table.get("targets"), "sass.targets").items()
    }
    raw_paths = table.get("load_paths", []) or []
    if not isinstance(raw_paths, list):
        msg = "sass.load_paths must be a list."
        raise SiteConfigError(msg)
    load_paths = [site_dir / str(entry) for entry in raw_paths]
    return SassConfig(compressed=compressed, targets=targets, load_paths=load_paths)


def _parse_timestamp(value: dt.datetime | dt.date | str | None) -> dt.datetime | None:
    """Return a timezone-aware UTC datetime parsed from ``value``, or None."""
    match value:
        case dt.datetime():
            parsed = value
        case dt.date():
            parsed = dt.datetime(value.year, value.month, value.day)
        case str() as text:
            sanitized = text.strip()
            if not sanitized:
                return None
            if sanitized.endswith("Z"):
                sanitized = sanitized[:-1] + "+00:00"
            try:
                parsed = dt.datetime.fromisoformat(sanitized)
            except ValueError:
                return None
        case _:
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=dt.UTC)
    return parsed.astimezone(dt.UTC)


__all__ = [
    "SASS_KEYS",
    "SITE_KEYS",
    "_build_macros",
    "_build_sass_config",
    "_normalize_base_url",
    "_optional_str",
    "_parse_timestamp",
    "_reject_unknown_keys",
    "_require_table",
]
