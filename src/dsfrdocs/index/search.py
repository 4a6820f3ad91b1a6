"""Fuzzy full-text search over documentation pages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Collection, Dict, Iterable, List, Sequence

from rapidfuzz import fuzz
from rapidfuzz.utils import default_process

from dsfrdocs.models import Document

# Relative importance of each field; a perfect match in a field weighted ``w``
# scores ``1 - w``, so only title hits can reach an exact 0.
FIELD_WEIGHTS: Dict[str, float] = {"title": 1.0, "tags": 0.8, "content": 0.75}


@dataclass(slots=True)
class SearchResult:
    document: Document
    score: float


@dataclass(frozen=True, slots=True)
class _IndexedFields:
    title: str
    content: str
    tags: tuple[str, ...]


def _normalise_categories(category: str | Collection[str] | None) -> frozenset[str] | None:
    if category is None:
        return None
    if isinstance(category, str):
        return frozenset({category}) if category else None
    return frozenset(category) or None


def _ordering_key(result: SearchResult) -> tuple:
    return (result.score, result.document.title.lower(), result.document.id)


class SearchIndex:
    """Point-in-time fuzzy index over a document collection.

    Scores run from 0 (exact) to 1 (unrelated). Rebuilding the index is the
    only mutation; queries never modify it.
    """

    def __init__(self, documents: Iterable[Document] = ()) -> None:
        self._documents: List[Document] = []
        self._fields: List[_IndexedFields] = []
        self.rebuild(documents)

    def __len__(self) -> int:
        return len(self._documents)

    @property
    def documents(self) -> Sequence[Document]:
        return tuple(self._documents)

    def rebuild(self, documents: Iterable[Document]) -> None:
        docs = sorted(documents, key=lambda doc: doc.id)
        self._fields = [
            _IndexedFields(
                title=default_process(doc.title),
                content=default_process(doc.content),
                tags=tuple(sorted(default_process(tag) for tag in doc.tags)),
            )
            for doc in docs
        ]
        self._documents = docs

    def score(self, query: str, fields: _IndexedFields) -> float:
        best = 1.0
        title = fuzz.WRatio(query, fields.title, processor=None) if fields.title else 0.0
        best = min(best, 1.0 - FIELD_WEIGHTS["title"] * title / 100.0)
        if fields.tags:
            tags = max(fuzz.WRatio(query, tag, processor=None) for tag in fields.tags)
            best = min(best, 1.0 - FIELD_WEIGHTS["tags"] * tags / 100.0)
        if fields.content:
            content = fuzz.partial_ratio(query, fields.content, processor=None)
            best = min(best, 1.0 - FIELD_WEIGHTS["content"] * content / 100.0)
        return round(best, 6)

    def search(
        self,
        query: str,
        *,
        category: str | Collection[str] | None = None,
        limit: int = 10,
        threshold: float = 0.3,
    ) -> List[SearchResult]:
        """Return up to ``limit`` results, best first.

        ``category`` is a hard pre-filter. An empty query enumerates every
        document in scope, ordered by title.
        """
        if limit < 0:
            raise ValueError("limit must not be negative")
        if not 0.0 <= threshold <= 1.0:
            raise ValueError("threshold must be between 0 and 1")

        allowed = _normalise_categories(category)
        candidates = [
            (doc, fields)
            for doc, fields in zip(self._documents, self._fields)
            if allowed is None or doc.category in allowed
        ]

        query = query or ""
        processed = default_process(query)
        results: List[SearchResult] = []
        if not query.strip():
            results = [SearchResult(document=doc, score=0.0) for doc, _ in candidates]
        elif processed:
            for doc, fields in candidates:
                score = self.score(processed, fields)
                if score <= threshold:
                    results.append(SearchResult(document=doc, score=score))
        # a punctuation-only query leaves nothing to match and finds nothing

        results.sort(key=_ordering_key)
        return results[:limit]
