"""Shared fixtures for the bakery test suite.

The fakes in this module stand in for the equation renderer and the syntax
highlighter so content tests can assert on exact markup without depending on
MathML or Pygments output. ``site_dir`` lays out a small but complete site
(config, templates, pages, stylesheets, and static files) in a temporary
directory for end-to-end builds.
"""

from __future__ import annotations

import collections.abc as cabc
import textwrap
from html import escape
from pathlib import Path

import pytest

from bakery.errors import EquationRenderError

SITE_CONFIG = """\
base_url = "https://example.com"
title = "Example Site"
theme = "monokai"

[macros]
RR = "\\\\mathbb{R}"

[sass]
compressed = true

[sass.targets]
"main.css" = "main.scss"
"""

PAGE_TEMPLATE = """\
<!doctype html>
<html>
<head>
  <title>{{ title }} | {{ site.config.title }}</title>
  <link rel="stylesheet" href="{{ sass(input='extra.scss', output='extra.css') }}">
</head>
<body>
  <h1 class="title">{{ page.title }}</h1>
  <p class="description">{{ description }}</p>
  <nav>
  {% for other in site.pages %}
    <a class="nav" href="{{ site.config.base_url }}{{ other.path }}">{{ other.title }}</a>
  {% endfor %}
  </nav>
  <main>{{ content | safe }}</main>
</body>
</html>
"""

INDEX_PAGE = """\
---
title: Home
description: Welcome to the site
template: page.html
---
# Welcome

Inline \\\\(a+b\\\\) maths and a display equation:

$$\\RR^2$$
"""

POST_PAGE = """\
+++
title = "Hello"
description = "First post"
template = "page.html"
date = 2024-05-01T10:00:00Z
+++
Intro paragraph.

<!-- more -->

```python
print("hi")
```

```nosuchlang
a < b
```
"""

DRAFT_PAGE = """\
---
title: Draft
description: Not yet
template: page.html
date: 2024-06-01
draft: true
---
Work in progress.
"""


class FakeEquationRenderer:
    """Deterministic renderer tagging the mode and echoing the source."""

    def __init__(self, *, fail_on: str | None = None) -> None:
        self.fail_on = fail_on
        self.calls: list[tuple[str, bool]] = []

    def render(
        self, source: str, display_mode: bool, macros: cabc.Mapping[str, str]
    ) -> str:
        self.calls.append((source, display_mode))
        if self.fail_on is not None and self.fail_on in source:
            raise EquationRenderError(source, "fake failure")
        if display_mode:
            return f'<div class="eq-display">{escape(source)}</div>'
        return f'<span class="eq-inline">{escape(source)}</span>'


class FakeHighlighter:
    """Highlighter that only knows the ``python`` tag."""

    known = frozenset({"python"})

    def highlight(self, code: str, tag: str, theme: str) -> str | None:
        if tag not in self.known:
            return None
        return f'<pre class="hl" data-tag="{tag}" data-theme="{theme}">{escape(code)}</pre>\n'


@pytest.fixture
def equations() -> FakeEquationRenderer:
    """Return a fresh fake equation renderer."""
    return FakeEquationRenderer()


@pytest.fixture
def highlighter() -> FakeHighlighter:
    """Return the fake syntax highlighter."""
    return FakeHighlighter()


def write_files(root: Path, files: cabc.Mapping[str, str]) -> None:
    """Write ``files`` (relative path to text) below ``root``."""
    for relative, text in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    """Lay out a complete example site and return its root."""
    root = tmp_path / "site"
    write_files(
        root,
        {
            "bakery.toml": SITE_CONFIG,
            "templates/page.html": PAGE_TEMPLATE,
            "content/index.md": INDEX_PAGE,
            "content/blog/hello.md": POST_PAGE,
            "content/blog/draft.md": DRAFT_PAGE,
            "sass/main.scss": textwrap.dedent(
                """\
                $accent: #c0ffee;
                body { color: $accent; }
                """
            ),
            "sass/extra.scss": ".extra { .nested { margin: 0; } }\n",
            "static/robots.txt": "User-agent: *\n",
            "static/img/logo.svg": "<svg></svg>\n",
        },
    )
    return root


def html_files(root: Path) -> list[str]:
    """Return the sorted relative paths of every HTML file under ``root``."""
    return sorted(path.relative_to(root).as_posix() for path in root.rglob("*.html"))


