"""Text helpers shared by the document builder and the formatters."""

from __future__ import annotations

import re

_LEADING_NUMBER = re.compile(r"^\d+-")
_SPACES = re.compile(r"\s+")
TITLE_SUFFIX = "- Système de design"


def word_count(text: str) -> int:
    return len(text.split())


def title_slug(title: str) -> str:
    """Turn a page title into the lookup name used for components and patterns.

    ``"Bouton - Système de design"`` becomes ``"bouton"``.
    """
    cleaned = title.replace(TITLE_SUFFIX, "")
    cleaned = _LEADING_NUMBER.sub("", cleaned).strip().lower()
    return _SPACES.sub("-", cleaned)


def excerpt(text: str, *, max_chars: int = 200) -> str:
    """Single-line preview of ``text``."""
    flat = _SPACES.sub(" ", text).strip()
    if len(flat) <= max_chars:
        return flat
    return flat[:max_chars].rstrip() + "..."
