"""In-memory store for everything extracted from the DSFR sources."""

from __future__ import annotations

import logging
import threading
from collections import Counter
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

from dsfrdocs.config import CATEGORY_LABELS
from dsfrdocs.index.search import SearchIndex, SearchResult
from dsfrdocs.ingestion import categorizer
from dsfrdocs.models import (
    ComponentEntity,
    Document,
    ExampleRecord,
    FileRecord,
    Fragment,
    ModuleEntity,
    SchemaRecord,
)
from dsfrdocs.utils.text import title_slug

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class _GuardedMap:
    """A dict with its own lock; each entity map is synchronised separately."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.items: Dict[str, Any] = {}

    def get(self, key: str) -> Any:
        with self.lock:
            return self.items.get(key)

    def snapshot(self) -> Dict[str, Any]:
        with self.lock:
            return dict(self.items)

    def __len__(self) -> int:
        with self.lock:
            return len(self.items)


class SourceRepository:
    """Owns the entity maps, the document collection and its search index.

    Writes from concurrent ingestion workers go through :meth:`apply`, which
    locks only the map being touched.
    """

    def __init__(self) -> None:
        self.components = _GuardedMap()
        self.core_modules = _GuardedMap()
        self.utilities = _GuardedMap()
        self.analytics = _GuardedMap()
        self.examples = _GuardedMap()
        self.schemas = _GuardedMap()
        self.documentation = _GuardedMap()
        self._documents_lock = threading.Lock()
        self._documents: Dict[str, Document] = {}
        self._search_index = SearchIndex()

    # Ingestion -----------------------------------------------------------

    def apply(self, fragment: Fragment) -> None:
        target = fragment.target
        if target == categorizer.COMPONENT:
            self._merge(self.components, fragment, ComponentEntity)
        elif target == categorizer.CORE:
            self._merge(self.core_modules, fragment, ModuleEntity)
        elif target == categorizer.UTILITY:
            self._merge(self.utilities, fragment, ModuleEntity)
        elif target == categorizer.ANALYTICS:
            self._put(self.analytics, fragment.key, FileRecord(fragment.path, fragment.content))
        elif target == categorizer.EXAMPLE:
            record = ExampleRecord(fragment.path, fragment.content, component=fragment.slot)
            self._put(self.examples, fragment.key, record)
        elif target == categorizer.SCHEMA:
            self._put(self.schemas, fragment.key, SchemaRecord(fragment.path, fragment.data or {}))
        elif target == categorizer.DOCUMENTATION:
            self._put(self.documentation, fragment.key, FileRecord(fragment.path, fragment.content))
        else:
            raise ValueError(f"Unknown fragment target: {target}")

    @staticmethod
    def _merge(guarded: _GuardedMap, fragment: Fragment, factory: Callable[[str], T]) -> None:
        with guarded.lock:
            entity = guarded.items.get(fragment.key)
            if entity is None:
                entity = guarded.items[fragment.key] = factory(fragment.key)
            entity.merge(fragment)

    @staticmethod
    def _put(guarded: _GuardedMap, key: str, record: Any) -> None:
        with guarded.lock:
            current = guarded.items.get(key)
            if current is None or record.path >= current.path:
                guarded.items[key] = record

    def add_documents(self, documents: Iterable[Document]) -> None:
        """Insert or replace documents, then rebuild the search index."""
        with self._documents_lock:
            for document in documents:
                self._documents[document.id] = document
            snapshot = list(self._documents.values())
        self._search_index = SearchIndex(snapshot)
        LOGGER.debug("Search index rebuilt with %d documents", len(snapshot))

    # Queries -------------------------------------------------------------

    @property
    def documents(self) -> List[Document]:
        with self._documents_lock:
            return sorted(self._documents.values(), key=lambda doc: doc.id)

    def get_document(self, doc_id: str) -> Optional[Document]:
        with self._documents_lock:
            return self._documents.get(doc_id)

    def find_document_by_name(self, name: str, category: str = "component") -> Optional[Document]:
        """Match a document of ``category`` by its title slug."""
        wanted = title_slug(name)
        for document in self.documents:
            if document.category == category and title_slug(document.title) == wanted:
                return document
        return None

    def search(
        self,
        query: str,
        *,
        category: str | Iterable[str] | None = None,
        limit: int = 10,
        threshold: float = 0.3,
    ) -> List[SearchResult]:
        index = self._search_index
        if category is not None and not isinstance(category, str):
            category = tuple(category)
        return index.search(query, category=category, limit=limit, threshold=threshold)

    def get_component(self, name: str) -> Optional[ComponentEntity]:
        return self.components.get(name)

    def component_names(self) -> List[str]:
        return sorted(self.components.snapshot())

    def get_core_module(self, name: str) -> Optional[ModuleEntity]:
        return self.core_modules.get(name)

    def get_utility(self, name: str) -> Optional[ModuleEntity]:
        return self.utilities.get(name)

    def get_documentation(self, name: str) -> Optional[FileRecord]:
        return self.documentation.get(name)

    def get_schema(self, name: str) -> Optional[SchemaRecord]:
        return self.schemas.get(name)

    def examples_for(self, component: str) -> List[ExampleRecord]:
        records = [
            record for record in self.examples.snapshot().values() if record.component == component
        ]
        return sorted(records, key=lambda record: record.path)

    def get_categories(self) -> Dict[str, Dict[str, Any]]:
        """Document counts per category, with display labels."""
        counts = Counter(document.category for document in self.documents)
        categories: Dict[str, Dict[str, Any]] = {}
        for key in sorted(counts):
            label = CATEGORY_LABELS.get(key, {"name": key, "description": ""})
            categories[key] = {
                "name": label["name"],
                "description": label["description"],
                "count": counts[key],
            }
        return categories

    def summary(self) -> Dict[str, Any]:
        components = self.components.snapshot()
        return {
            "components": len(components),
            "core_modules": len(self.core_modules),
            "utilities": len(self.utilities),
            "analytics": len(self.analytics),
            "examples": len(self.examples),
            "schemas": len(self.schemas),
            "documentation": len(self.documentation),
            "documents": len(self.documents),
            "component_details": {
                name: {
                    "files": len(entity.files),
                    "styles": len(entity.styles),
                    "scripts": len(entity.scripts),
                    "templates": len(entity.templates),
                    "has_documentation": bool(entity.documentation),
                    "has_schema": entity.schema is not None,
                    "examples": len(entity.examples),
                }
                for name, entity in sorted(components.items())
            },
        }
