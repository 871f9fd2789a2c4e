"""Common literal values used across bakery.

These constants keep the site layout (sub-directory names, well-known files,
and Markdown conventions) centralized so the loader, the build stages, the
watch loop, and tests can import the same values without drifting. Intended
for internal use within the bakery package.

Examples
--------
>>> from bakery import _constants
>>> _constants.TARGET_SUBDIR
'target'
>>> _constants.FEED_FILENAME.endswith('.xml')
True
"""

MARKDOWN_EXT = ".md"

CONTENT_SUBDIR = "content"
CSS_SUBDIR = "css"
SASS_SUBDIR = "sass"
STATIC_SUBDIR = "static"
TARGET_SUBDIR = "target"
TEMPLATES_SUBDIR = "templates"

CONFIG_FILENAME = "bakery.toml"
FEED_FILENAME = "atom.xml"
INDEX_HTML = "index.html"
INDEX_PAGE = "index"

DEFAULT_THEME = "monokai"
EQUATION_FENCE_TAGS = frozenset({"latex", "math"})
EQUATION_SIGIL = "$"
EXCERPT_SEPARATOR = "<!-- more -->"
