"""Build static websites from Markdown with LaTeX equations.

The package turns a site directory of Markdown pages, Jinja2 templates,
stylesheets and static files into a ready-to-serve ``target/`` folder. Pages
may embed ``$$...$$`` display equations and ``\\\\(...\\\\)`` inline equations,
which are rendered to MathML, and fenced code blocks, which are highlighted
with Pygments.

Exports
-------
- ``app``: Cyclopts application behind the ``bakery`` command.
- ``main``: Convenience function that invokes the Cyclopts app.
- ``build_site``: Build a site directory programmatically.

Examples
--------
>>> from pathlib import Path
>>> from bakery import build_site
>>> build_site(Path("site")).ok  # doctest: +SKIP
True
>>> from bakery import app
>>> callable(app)
True
"""

from __future__ import annotations

from .cli import app, main
from .orchestrator import build_site

__all__ = ["app", "build_site", "main"]
