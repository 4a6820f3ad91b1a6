"""Cache-first retrieval operations exposed to the tool layer.

Every operation returns a :class:`ToolResponse`: one Markdown text block plus
structured metadata the caller may ignore. Failures never escape as
exceptions; they come back as an error response and are not cached.
"""

from __future__ import annotations

import colorsys
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from dsfrdocs.cache.store import CacheStore
from dsfrdocs.config import AppConfig, CATEGORY_LABELS
from dsfrdocs.index.repository import SourceRepository
from dsfrdocs.index.search import SearchResult
from dsfrdocs.models import ComponentEntity, Document, ExampleRecord
from dsfrdocs.utils.text import excerpt, title_slug

LOGGER = logging.getLogger(__name__)

MAX_LIMIT = 50
PATTERN_CATEGORIES = ("pattern", "template")
COLOR_FORMATS = ("hex", "rgb", "hsl")

ACCESSIBILITY_KEYWORDS = (
    "aria",
    "role",
    "accessibilité",
    "rgaa",
    "wcag",
    "contraste",
    "navigation clavier",
    "lecteur d'écran",
    "lecteur d’écran",
)

CORE_PALETTE: Tuple[Tuple[str, str], ...] = (
    ("Bleu France", "#000091"),
    ("Blanc", "#FFFFFF"),
    ("Rouge Marianne", "#E1000F"),
    ("Gris", "#666666"),
)

COLOR_UTILITIES: Tuple[Tuple[str, str], ...] = (
    (".fr-background--blue-france", "Bleu France background"),
    (".fr-text--blue-france", "Bleu France text"),
    (".fr-background--alt", "Alternative background"),
    (".fr-text--alt", "Alternative text"),
)

Formatted = Tuple[str, Dict[str, Any]]


@dataclass(slots=True)
class ToolResponse:
    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    is_error: bool = False


def _normalise(value: Any) -> Any:
    if isinstance(value, str):
        return " ".join(value.split()).lower()
    return value


def make_cache_key(operation: str, params: Dict[str, Any]) -> str:
    """Deterministic key from an operation name and its normalised arguments."""
    return f"{operation}:{json.dumps(params, sort_keys=True, ensure_ascii=False)}"


def convert_color(hex_value: str, fmt: str) -> str:
    if fmt == "hex":
        return hex_value
    red, green, blue = (int(hex_value[i : i + 2], 16) for i in (1, 3, 5))
    if fmt == "rgb":
        return f"rgb({red}, {green}, {blue})"
    hue, lightness, saturation = colorsys.rgb_to_hls(red / 255, green / 255, blue / 255)
    return f"hsl({round(hue * 360)}, {round(saturation * 100)}%, {round(lightness * 100)}%)"


def category_name(key: str) -> str:
    return CATEGORY_LABELS.get(key, {}).get("name", key)


def accessibility_notes(content: str) -> str:
    lines = [
        line
        for line in content.splitlines()
        if any(keyword in line.lower() for keyword in ACCESSIBILITY_KEYWORDS)
    ]
    if not lines:
        return "No specific accessibility information found in the documentation."
    return "\n".join(lines)


def _relevance(score: float) -> str:
    return f"{round((1 - score) * 100)}%"


def _result_metadata(results: Iterable[SearchResult]) -> List[Dict[str, Any]]:
    return [
        {"id": result.document.id, "title": result.document.title, "score": result.score}
        for result in results
    ]


class RetrievalService:
    """Answers tool queries from the repository through a :class:`CacheStore`."""

    def __init__(
        self,
        repository: SourceRepository,
        cache: CacheStore,
        config: AppConfig | None = None,
    ) -> None:
        self.repository = repository
        self.cache = cache
        self.config = config or AppConfig()

    @classmethod
    def from_config(cls, repository: SourceRepository, config: AppConfig) -> "RetrievalService":
        cache = CacheStore(
            max_memory=config.cache_max_memory,
            default_ttl_ms=config.cache_default_ttl_ms,
            cleanup_interval=config.cache_cleanup_interval,
            compression=config.cache_compression,
            compression_threshold=config.cache_compression_threshold,
        )
        cache.start()
        return cls(repository, cache, config)

    def close(self) -> None:
        """Stop the cache sweep thread."""
        self.cache.close()

    def __enter__(self) -> "RetrievalService":
        self.cache.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _cached(
        self, operation: str, params: Dict[str, Any], compute: Callable[[], Formatted]
    ) -> ToolResponse:
        key = make_cache_key(operation, params)
        cached = self.cache.get(key)
        if cached is not None:
            return ToolResponse(cached["text"], {**cached["metadata"], "cached": True})

        try:
            text, metadata = compute()
        except Exception as exc:
            LOGGER.exception("Retrieval operation %s failed (params=%s)", operation, params)
            return ToolResponse(
                text=f"Error while running {operation}: {exc}",
                metadata={"operation": operation, "error": str(exc)},
                is_error=True,
            )

        metadata = {"operation": operation, **metadata}
        self.cache.set(key, {"text": text, "metadata": metadata}, self.config.ttl_for(operation))
        return ToolResponse(text, {**metadata, "cached": False})

    def _search(self, query: str, **options: Any) -> List[SearchResult]:
        options.setdefault("threshold", self.config.search_threshold)
        return self.repository.search(query, **options)

    # Operations ----------------------------------------------------------

    def search_components(
        self, query: str, category: str | None = None, limit: int = 10
    ) -> ToolResponse:
        query, category = _normalise(query), _normalise(category)
        params = {"query": query, "category": category, "limit": limit}

        def compute() -> Formatted:
            if not 1 <= limit <= MAX_LIMIT:
                raise ValueError(f"limit must be between 1 and {MAX_LIMIT}")
            results = self._search(query, category=category, limit=limit)
            return self._format_search(results, query), {
                "query": query,
                "category": category,
                "count": len(results),
                "results": _result_metadata(results),
            }

        return self._cached("search", params, compute)

    def get_component_details(
        self,
        name: str,
        include_examples: bool = True,
        include_accessibility: bool = True,
    ) -> ToolResponse:
        name = _normalise(name)
        params = {
            "name": name,
            "include_examples": include_examples,
            "include_accessibility": include_accessibility,
        }

        def compute() -> Formatted:
            document = self.repository.find_document_by_name(name)
            if document is None:
                document = self.repository.get_document(name)
            entity = self.repository.get_component(name) or self.repository.get_component(
                title_slug(name)
            )
            if document is None and entity is None:
                hits = self._search(name, limit=1)
                document = hits[0].document if hits else None

            if document is None and entity is None:
                return f'Component "{name}" not found.', {"name": name, "found": False}

            examples: List[ExampleRecord] = []
            if entity is not None:
                examples = list(entity.examples) + self.repository.examples_for(entity.name)
            text = self._format_component(
                name, document, entity, examples, include_examples, include_accessibility
            )
            return text, {
                "name": name,
                "found": True,
                "document_id": document.id if document else None,
                "has_sources": entity is not None,
            }

        return self._cached("component", params, compute)

    def list_categories(self) -> ToolResponse:
        def compute() -> Formatted:
            categories = self.repository.get_categories()
            summary = self.repository.summary()
            summary.pop("component_details", None)
            return self._format_categories(categories, summary), {
                "categories": categories,
                "inventory": summary,
                "components": self.repository.component_names(),
            }

        return self._cached("categories", {}, compute)

    def search_patterns(self, query: str, pattern_type: str | None = None) -> ToolResponse:
        query, pattern_type = _normalise(query), _normalise(pattern_type)
        params = {"query": query, "pattern_type": pattern_type}

        def compute() -> Formatted:
            results = self._search(query, category=PATTERN_CATEGORIES, limit=10)
            if pattern_type:
                results = [r for r in results if pattern_type in r.document.title.lower()]
            return self._format_patterns(results, query), {
                "query": query,
                "pattern_type": pattern_type,
                "count": len(results),
                "results": _result_metadata(results),
            }

        return self._cached("patterns", params, compute)

    def get_icons(self, category: str | None = None, search: str | None = None) -> ToolResponse:
        category, search = _normalise(category), _normalise(search)
        params = {"category": category, "search": search}

        def compute() -> Formatted:
            results = self._search(search or "icône", limit=20)
            icons = [
                r
                for r in results
                if "icône" in r.document.title.lower() or "icon" in r.document.title.lower()
            ]
            if category:
                icons = [r for r in icons if category in r.document.title.lower()]
            return self._format_icons(icons, category), {
                "category": category,
                "search": search,
                "count": len(icons),
                "results": _result_metadata(icons),
            }

        return self._cached("icons", params, compute)

    def get_colors(self, format: str = "hex", include_utilities: bool = True) -> ToolResponse:
        fmt = _normalise(format)
        params = {"format": fmt, "include_utilities": include_utilities}

        def compute() -> Formatted:
            if fmt not in COLOR_FORMATS:
                raise ValueError(f"Unsupported colour format {format!r}; use one of {COLOR_FORMATS}")
            results = self._search("couleur", limit=10)
            palette = {label: convert_color(value, fmt) for label, value in CORE_PALETTE}
            return self._format_colors(palette, results, include_utilities), {
                "format": fmt,
                "palette": palette,
                "documents": _result_metadata(results),
            }

        return self._cached("colors", params, compute)

    # Formatting ----------------------------------------------------------

    @staticmethod
    def _format_search(results: List[SearchResult], query: str) -> str:
        if not results:
            return f'No results found for "{query}".'

        out = [f'# Search results for "{query}"', "", f"Found {len(results)} result(s):", ""]
        for position, result in enumerate(results, start=1):
            doc = result.document
            out += [
                f"## {position}. {doc.title}",
                f"- **Category**: {category_name(doc.category)}",
                f"- **Type**: {doc.component_type}",
                f"- **Tags**: {', '.join(sorted(doc.tags)) or 'None'}",
                f"- **URL**: {doc.source_url}",
                f"- **Relevance**: {_relevance(result.score)}",
                f"- **Preview**: {excerpt(doc.content)}",
                "",
            ]
        return "\n".join(out)

    @staticmethod
    def _format_component(
        name: str,
        document: Optional[Document],
        entity: Optional[ComponentEntity],
        examples: List[ExampleRecord],
        include_examples: bool,
        include_accessibility: bool,
    ) -> str:
        title = document.title if document else name
        description = document.content if document else ""
        if not description and entity is not None:
            description = entity.documentation
        out = [f"# {title}", ""]
        if document and document.source_url:
            out += [f"**Source URL**: {document.source_url}", ""]
        out += ["## Description", "", description or "No documentation available.", ""]

        if include_examples and document and document.code_examples:
            out += ["## Code examples", ""]
            for position, example in enumerate(document.code_examples, start=1):
                out += [
                    f"### Example {position} ({example.language})",
                    "",
                    f"```{example.language}",
                    example.code,
                    "```",
                    "",
                ]

        if entity is not None:
            out += [
                "## Source files",
                "",
                f"- **Styles**: {', '.join(sorted(entity.styles)) or 'None'}",
                f"- **Scripts**: {', '.join(sorted(entity.scripts)) or 'None'}",
                f"- **Templates**: {', '.join(sorted(entity.templates)) or 'None'}",
                f"- **Files**: {', '.join(sorted(entity.files)) or 'None'}",
                f"- **Schema**: {'yes' if entity.schema is not None else 'no'}",
                "",
            ]
            if include_examples and examples:
                out += ["## Source examples", ""]
                for example in examples:
                    out += [f"### {example.path}", "", "```html", example.content.strip(), "```", ""]

        if include_accessibility:
            out += ["## Accessibility", "", accessibility_notes(description), ""]

        if document is not None:
            out += [
                "## Metadata",
                "",
                f"- **Category**: {category_name(document.category)}",
                f"- **Type**: {document.component_type}",
                f"- **Tags**: {', '.join(sorted(document.tags)) or 'None'}",
                f"- **Words**: {document.word_count}",
            ]
        return "\n".join(out).rstrip() + "\n"

    @staticmethod
    def _format_categories(categories: Dict[str, Dict[str, Any]], inventory: Dict[str, Any]) -> str:
        out = ["# Available DSFR categories", ""]
        for key, details in categories.items():
            out += [
                f"## {details['name']} ({key})",
                details["description"],
                f"**{details['count']} document(s)**",
                "",
            ]
        out += ["## Source inventory", ""]
        out += [f"- **{key.replace('_', ' ').capitalize()}**: {count}" for key, count in inventory.items()]
        return "\n".join(out) + "\n"

    @staticmethod
    def _format_patterns(results: List[SearchResult], query: str) -> str:
        if not results:
            return f'No patterns found for "{query}".'
        out = [f'# Patterns found for "{query}"', ""]
        for position, result in enumerate(results, start=1):
            out += [
                f"## {position}. {result.document.title}",
                f"- **URL**: {result.document.source_url}",
                f"- **Relevance**: {_relevance(result.score)}",
                "",
            ]
        return "\n".join(out)

    @staticmethod
    def _format_icons(results: List[SearchResult], category: str | None) -> str:
        out = ["# DSFR icons", ""]
        if category:
            out += [f"## Category: {category}", ""]
        if not results:
            out.append("No icon documentation found.")
        for result in results:
            out += [f"### {result.document.title}", f"URL: {result.document.source_url}", ""]
        return "\n".join(out).rstrip() + "\n"

    @staticmethod
    def _format_colors(
        palette: Dict[str, str], results: List[SearchResult], include_utilities: bool
    ) -> str:
        out = ["# DSFR colour palette", "", "## Core colours", ""]
        out += [f"- **{label}**: {value}" for label, value in palette.items()]
        out.append("")
        if include_utilities:
            out += ["## Colour utility classes", ""]
            out += [f"- `{css_class}`: {label}" for css_class, label in COLOR_UTILITIES]
            out.append("")
        if results:
            out += ["## Detailed documentation", ""]
            out += [f"- [{r.document.title}]({r.document.source_url})" for r in results]
        return "\n".join(out).rstrip() + "\n"
