"""Path-based classification of DSFR source files."""

from __future__ import annotations

from typing import Callable, Tuple

from dsfrdocs.utils.files import normalize_logical_path

COMPONENT = "component"
CORE = "core"
UTILITY = "utility"
ANALYTICS = "analytics"
EXAMPLE = "example"
SCHEMA = "schema"
DOCUMENTATION = "documentation"
STYLE = "style"
SCRIPT = "script"
CONFIG = "config"
OTHER = "other"

CATEGORIES = (
    COMPONENT,
    CORE,
    UTILITY,
    ANALYTICS,
    EXAMPLE,
    SCHEMA,
    DOCUMENTATION,
    STYLE,
    SCRIPT,
    CONFIG,
    OTHER,
)

# First match wins. Colour schemes have no handler of their own and are
# reported as ``other`` before the generic extension rules can claim them.
_RULES: Tuple[Tuple[Callable[[str], bool], str], ...] = (
    (lambda p: "/component/" in p, COMPONENT),
    (lambda p: "/core/" in p, CORE),
    (lambda p: "/utility/" in p, UTILITY),
    (lambda p: "/analytics/" in p, ANALYTICS),
    (lambda p: "/example/" in p, EXAMPLE),
    (lambda p: "/scheme/" in p, OTHER),
    (lambda p: p.endswith(".schema.yml"), SCHEMA),
    (lambda p: "/doc/" in p or p.endswith(".md"), DOCUMENTATION),
    (lambda p: p.endswith(".scss"), STYLE),
    (lambda p: p.endswith(".js"), SCRIPT),
    (lambda p: p.endswith((".yml", ".yaml")), CONFIG),
)


def categorize(path: str) -> str:
    """Return the category of ``path``; never raises, defaults to ``other``."""
    normalized = normalize_logical_path(path)
    for matches, category in _RULES:
        if matches(normalized):
            return category
    return OTHER
