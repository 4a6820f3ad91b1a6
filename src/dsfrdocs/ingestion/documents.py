"""Build :class:`Document` records from scraped documentation pages.

Pages carry a loose header before the Markdown body::

    URL:
    https://www.systeme-de-design.gouv.fr/elements-d-interface/composants/bouton
    Title:
    Bouton - Système de design
    Markdown:
    # Bouton
    ...

Label values may sit on the label line itself or on the following line.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from dsfrdocs.models import CodeExample, Document
from dsfrdocs.utils.text import word_count

HEADER_LINES = 20
BODY_MARKER = "Markdown:"
DEFAULT_CATEGORY = "component"
DEFAULT_COMPONENT_TYPE = "utility"
DEFAULT_LANGUAGE = "html"

URL_CATEGORY_RULES: Tuple[Tuple[str, str], ...] = (
    ("/component/", "component"),
    ("/core/", "core"),
    ("/analytics/", "analytics"),
    ("/pattern/", "pattern"),
    ("/template/", "template"),
)

COMPONENT_TYPE_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("form", ("formulaire", "champ")),
    ("navigation", ("navigation", "menu")),
    ("feedback", ("alerte", "message")),
    ("content", ("carte", "tuile")),
    ("layout", ("mise en page", "grille")),
)

TAG_VOCABULARY: Tuple[str, ...] = (
    "bouton",
    "formulaire",
    "navigation",
    "carte",
    "alerte",
    "modal",
    "accordéon",
    "tableau",
    "liste",
    "lien",
    "icône",
    "badge",
    "accessibilité",
    "responsive",
    "mobile",
    "desktop",
)

_CODE_FENCE = re.compile(r"```([^\n`]*)\n(.*?)```", re.DOTALL)
_HEADING = re.compile(r"^#\s+(.+)$", re.MULTILINE)


def detect_category(url: str) -> str:
    for needle, category in URL_CATEGORY_RULES:
        if needle in url:
            return category
    return DEFAULT_CATEGORY


def detect_component_type(title: str) -> str:
    lowered = title.lower()
    for component_type, keywords in COMPONENT_TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return component_type
    return DEFAULT_COMPONENT_TYPE


def generate_tags(title: str, body: str) -> frozenset[str]:
    haystack = f"{title}\n{body}".lower()
    return frozenset(keyword for keyword in TAG_VOCABULARY if keyword in haystack)


def extract_code_examples(body: str) -> Tuple[CodeExample, ...]:
    examples: List[CodeExample] = []
    for match in _CODE_FENCE.finditer(body):
        info = match.group(1).strip()
        language = info.split()[0] if info else DEFAULT_LANGUAGE
        examples.append(CodeExample(code=match.group(2).strip(), language=language))
    return tuple(examples)


def _label_value(lines: Sequence[str], index: int, label: str) -> str:
    inline = lines[index][len(label):].strip()
    if inline:
        return inline
    if index + 1 < len(lines):
        return lines[index + 1].strip()
    return ""


def split_header(content: str) -> Tuple[str, str, str]:
    """Return ``(url, title, body)`` for a raw page."""
    lines = content.splitlines()
    marker_index: Optional[int] = None
    for index, line in enumerate(lines):
        if line.startswith(BODY_MARKER):
            marker_index = index
            break

    if marker_index is None:
        header = lines[:HEADER_LINES]
        body = content
    else:
        header = lines[: min(marker_index, HEADER_LINES)]
        trailing = lines[marker_index][len(BODY_MARKER):].strip()
        body_lines = lines[marker_index + 1 :]
        if trailing:
            body_lines = [trailing, *body_lines]
        body = "\n".join(body_lines)

    url = title = ""
    for index, line in enumerate(header):
        if not url and line.startswith("URL:"):
            url = _label_value(header, index, "URL:")
        elif not title and line.startswith("Title:"):
            title = _label_value(header, index, "Title:")

    return url, title, body


class DocumentModelBuilder:
    """Parses documentation sources into immutable :class:`Document` records."""

    def build(
        self,
        filename: str,
        content: str,
        *,
        relative_path: str | None = None,
        indexed_at: datetime | None = None,
    ) -> Document:
        """Build a document; ``relative_path`` below the docs root keys its id."""
        url, title, body = split_header(content)
        if not title:
            heading = _HEADING.search(body)
            title = heading.group(1).strip() if heading else Path(filename).stem

        return Document(
            id=document_id(relative_path or filename),
            filename=filename,
            source_url=url,
            title=title,
            category=detect_category(url),
            component_type=detect_component_type(title),
            content=body,
            code_examples=extract_code_examples(body),
            tags=generate_tags(title, body),
            word_count=word_count(body),
            last_indexed=indexed_at or datetime.now(timezone.utc),
        )


def document_id(relative_path: str) -> str:
    """Stable id: the POSIX path below the docs root without its .md suffix."""
    path = relative_path.replace("\\", "/")
    return path[: -len(".md")] if path.endswith(".md") else path
