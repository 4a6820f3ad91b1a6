"""Utility helpers for working with the DSFR source tree."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Iterator

LOGGER = logging.getLogger(__name__)

META_SUFFIX = ".meta.json"
FLATTENED_SEPARATOR = "__"
IGNORED_NAMES = frozenset({"index.json", "parsing-summary.json"})


def is_ingestible(path: Path) -> bool:
    """Return True for content files; sidecars, indexes and hidden files are skipped."""
    name = path.name
    return not (
        name.startswith(".")
        or name.endswith(META_SUFFIX)
        or name in IGNORED_NAMES
    )


def iter_source_files(root: Path) -> Iterator[Path]:
    """Yield content files below ``root`` in a stable order."""
    if not root.is_dir():
        return
    for item in sorted(root.rglob("*")):
        relative = item.relative_to(root)
        if any(part.startswith(".") for part in relative.parts[:-1]):
            continue
        if item.is_file() and is_ingestible(item):
            yield item


def iter_markdown_paths(inputs: Iterable[Path]) -> Iterator[Path]:
    """Yield Markdown paths from input paths, descending into directories."""
    for item in inputs:
        if item.is_dir():
            yield from iter_markdown_paths(sorted(child for child in item.rglob("*.md")))
        elif item.is_file() and item.suffix.lower() == ".md":
            yield item


def normalize_logical_path(path: str) -> str:
    """Use forward slashes and a leading slash so segment rules match at the root."""
    normalized = path.replace("\\", "/")
    if not normalized.startswith("/"):
        normalized = "/" + normalized
    return normalized


def resolve_logical_path(path: Path, root: Path) -> str:
    """Recover the original logical path of a (possibly flattened) source file.

    The ``<file>.meta.json`` sidecar wins when present and readable; otherwise a
    flattened name such as ``src__component__button__button.scss`` is unfolded,
    and as a last resort the path relative to ``root`` is used.
    """
    sidecar = path.with_name(path.name + META_SUFFIX)
    if sidecar.is_file():
        try:
            original = json.loads(sidecar.read_text(encoding="utf-8")).get("originalPath")
        except (OSError, ValueError, AttributeError) as exc:
            LOGGER.debug("Ignoring unreadable sidecar %s: %s", sidecar, exc)
        else:
            if isinstance(original, str) and original:
                return normalize_logical_path(original)

    if FLATTENED_SEPARATOR in path.name:
        return normalize_logical_path(path.name.replace(FLATTENED_SEPARATOR, "/"))

    try:
        relative = path.relative_to(root)
    except ValueError:
        relative = Path(path.name)
    return normalize_logical_path(relative.as_posix())
