"""Cyclopts CLI entrypoint for building bakery sites.

The ``bakery`` console script builds the site in a directory into its
``target/`` folder, optionally including draft pages, and can keep watching
the directory to rebuild after every change. Options may also be supplied
through ``BAKERY_``-prefixed environment variables (``BAKERY_DRAFTS=1``).

Examples
--------
Build a site once:

>>> from bakery.cli import app
>>> app.run(["site"])  # doctest: +SKIP

Watch a site, including drafts:

>>> app.run(["site", "--drafts", "--watch"])  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .errors import AggregatedBuildError
from .orchestrator import build_site
from .watch import DEFAULT_DEBOUNCE, watch

if typ.TYPE_CHECKING:
    from .orchestrator import BuildResult

LOG_FORMAT = "%(levelname)s: %(message)s"

app = App(name="bakery", config=cyclopts.config.Env("BAKERY_", command=False))  # type: ignore[unknown-argument]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def setup_logging(*, verbose: bool = False) -> None:
    """Configure root logging for command-line use."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format=LOG_FORMAT,
    )


def _written_paths(result: BuildResult) -> list[Path]:
    pages = typ.cast("list[Path]", result.value("render_html") or [])
    feed = typ.cast("Path | None", result.value("render_feed"))
    return [*pages, *([feed] if feed else [])]


def _build_once(site_dir: Path, *, drafts: bool, verbose: bool) -> bool:
    """Build ``site_dir`` and report the outcome; return ``True`` on success."""
    print(f"Building {_format_path(site_dir)}...")
    try:
        result = build_site(site_dir, drafts)
    except AggregatedBuildError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        for error in exc.errors[1:]:
            print(f"  also: {error}", file=sys.stderr)
        return False
    if verbose:
        for path in _written_paths(result):
            print(f"wrote {_format_path(path)}")
    print("OK!")
    return True


@app.default
def build(
    site_dir: typ.Annotated[
        Path, Parameter(help="Site directory containing bakery.toml")
    ] = Path(),
    *,
    drafts: typ.Annotated[
        bool, Parameter(help="Include pages marked as drafts")
    ] = False,
    watch_site: typ.Annotated[
        bool, Parameter(name="--watch", help="Rebuild whenever the site changes")
    ] = False,
    verbose: typ.Annotated[
        bool, Parameter(help="Log progress and list written files")
    ] = False,
    debounce: typ.Annotated[
        float, Parameter(help="Seconds of quiet before a watch rebuild")
    ] = DEFAULT_DEBOUNCE,
) -> None:
    """Build the site in ``site_dir`` into ``site_dir/target``.

    Parameters
    ----------
    site_dir : Path, optional
        Directory holding ``bakery.toml``; defaults to the current directory.
    drafts : bool, optional
        Render pages whose front matter sets ``draft``.
    watch_site : bool, optional
        Keep running and rebuild after each qualifying file change.
    verbose : bool, optional
        Enable INFO logging and print every written path.
    debounce : float, optional
        Quiet period, in seconds, that coalesces bursts of file events.

    Raises
    ------
    SystemExit
        With status 1 when a one-shot build fails.
    """
    setup_logging(verbose=verbose)
    if watch_site:
        watch(
            site_dir,
            lambda: _build_once(site_dir, drafts=drafts, verbose=verbose),
            debounce=debounce,
        )
        return
    if not _build_once(site_dir, drafts=drafts, verbose=verbose):
        raise SystemExit(1)


def main() -> None:
    """Invoke the Cyclopts application that powers the ``bakery`` command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
