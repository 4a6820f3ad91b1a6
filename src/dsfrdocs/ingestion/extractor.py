"""Turn categorised source files into typed fragments.

Extraction is pure: the same ``(category, path, content)`` always produces the
same fragments, and merging them into entities is left to the repository.
"""

from __future__ import annotations

import logging
import re
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional

import yaml

from dsfrdocs.ingestion import categorizer
from dsfrdocs.models import Fragment
from dsfrdocs.utils.files import normalize_logical_path

LOGGER = logging.getLogger(__name__)

_YAML_LINE = re.compile(r"^([^:]+):\s*(.*)$")
_EXAMPLE_OWNER = re.compile(r"/example/component/([^/]+)/")


def parse_yaml_lines(content: str) -> Dict[str, Any]:
    """Lenient line-based YAML reader.

    Handles top-level ``key: value`` pairs and one level of nested ``key:``
    blocks. This is intentionally not a YAML implementation: lines it cannot
    read are skipped and it never raises.
    """
    result: Dict[str, Any] = {}
    current_key: Optional[str] = None

    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        match = _YAML_LINE.match(stripped)
        if not match:
            continue
        key, value = match.group(1).strip(), match.group(2).strip()
        indent = len(line) - len(line.lstrip())

        if indent == 0:
            current_key = key
            result[key] = value or {}
        elif current_key is not None:
            if not isinstance(result[current_key], dict):
                result[current_key] = {}
            result[current_key][key] = value

    return result


def parse_yaml(content: str) -> Dict[str, Any]:
    """Parse schema/config YAML, falling back to :func:`parse_yaml_lines`.

    Malformed documents are not an error: whatever the line reader can salvage
    is returned instead.
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        LOGGER.debug("Falling back to line-based YAML parsing: %s", exc)
        return parse_yaml_lines(content)
    if data is None:
        return {}
    if isinstance(data, dict):
        return data
    return parse_yaml_lines(content)


def segment_after(path: str, marker: str) -> Optional[str]:
    """Return the directory name directly following ``/<marker>/`` in ``path``."""
    match = re.search(rf"/{re.escape(marker)}/([^/]+)/", path)
    return match.group(1) if match else None


def style_variant(filename: str) -> str:
    for variant in ("legacy", "print", "main"):
        if variant in filename:
            return variant
    return "default"


def script_variant(filename: str) -> str:
    for variant in ("api", "legacy", "main"):
        if variant in filename:
            return variant
    return "default"


class ContentExtractor:
    """Routes one source file to the fragments its category calls for."""

    def extract(self, category: str, path: str, content: str) -> List[Fragment]:
        path = normalize_logical_path(path)
        handler = {
            categorizer.COMPONENT: self._component,
            categorizer.CORE: self._core,
            categorizer.UTILITY: self._utility,
            categorizer.ANALYTICS: self._analytics,
            categorizer.EXAMPLE: self._example,
            categorizer.SCHEMA: self._schema,
            categorizer.DOCUMENTATION: self._documentation,
        }.get(category)
        if handler is None:
            return []
        return handler(path, content)

    def _component(self, path: str, content: str) -> List[Fragment]:
        name = segment_after(path, "component")
        if name is None:
            LOGGER.debug("No component name in %s", path)
            return []

        filename = PurePosixPath(path).name
        data = None
        if path.endswith(".scss"):
            kind, slot = "style", style_variant(filename)
        elif path.endswith(".js"):
            kind, slot = "script", script_variant(filename)
        elif path.endswith((".yml", ".yaml")):
            kind, slot, data = "schema", "", parse_yaml(content)
        elif path.endswith(".md"):
            kind, slot = "documentation", ""
        elif path.endswith(".ejs"):
            kind, slot = "template", filename[: -len(".ejs")]
        elif "/example/" in path:
            kind, slot = "example", ""
        else:
            kind, slot = "file", filename

        return [Fragment(categorizer.COMPONENT, name, kind, slot, path, content, data)]

    def _module(self, target: str, path: str, content: str) -> List[Fragment]:
        name = segment_after(path, target) or PurePosixPath(path).parent.name
        kind = "documentation" if path.endswith(".md") else "file"
        return [Fragment(target, name, kind, PurePosixPath(path).name, path, content)]

    def _core(self, path: str, content: str) -> List[Fragment]:
        return self._module(categorizer.CORE, path, content)

    def _utility(self, path: str, content: str) -> List[Fragment]:
        return self._module(categorizer.UTILITY, path, content)

    def _analytics(self, path: str, content: str) -> List[Fragment]:
        filename = PurePosixPath(path).name
        return [Fragment(categorizer.ANALYTICS, filename, "record", filename, path, content)]

    def _example(self, path: str, content: str) -> List[Fragment]:
        match = _EXAMPLE_OWNER.search(path)
        if not match:
            LOGGER.debug("Discarding example outside a component: %s", path)
            return []
        return [Fragment(categorizer.EXAMPLE, path, "example", match.group(1), path, content)]

    def _schema(self, path: str, content: str) -> List[Fragment]:
        owner = segment_after(path, "component") or "unknown"
        return [
            Fragment(categorizer.SCHEMA, owner, "schema", "", path, content, parse_yaml(content))
        ]

    def _documentation(self, path: str, content: str) -> List[Fragment]:
        filename = PurePosixPath(path).name
        name = filename[: -len(".md")] if filename.endswith(".md") else filename
        return [Fragment(categorizer.DOCUMENTATION, name, "documentation", "", path, content)]
