"""Core DSFR documentation data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import PurePosixPath
from typing import Any, Dict, FrozenSet, List, Optional, Tuple


@dataclass(frozen=True, slots=True)
class CodeExample:
    code: str
    language: str = "html"


@dataclass(frozen=True, slots=True)
class Document:
    """A documentation page ready for indexing.

    Documents are immutable once built; re-ingesting a file replaces the record.
    """

    id: str
    filename: str
    source_url: str
    title: str
    category: str
    component_type: str
    content: str
    code_examples: Tuple[CodeExample, ...] = ()
    tags: FrozenSet[str] = frozenset()
    word_count: int = 0
    last_indexed: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class Fragment:
    """One typed piece of content extracted from a single source file.

    ``target`` names the entity map, ``key`` the entity inside it, ``kind``
    the routing decision and ``slot`` the sub-key (variant, template name...).
    """

    target: str
    key: str
    kind: str
    slot: str
    path: str
    content: str
    data: Optional[Dict[str, Any]] = None

    @property
    def basename(self) -> str:
        return PurePosixPath(self.path).name


@dataclass(frozen=True, slots=True)
class ExampleRecord:
    path: str
    content: str
    component: str = ""


@dataclass(frozen=True, slots=True)
class FileRecord:
    path: str
    content: str


@dataclass(frozen=True, slots=True)
class SchemaRecord:
    path: str
    data: Dict[str, Any]


class _SlotOwnership:
    """Tracks which source path last wrote each slot of an entity.

    A write only lands when its path sorts at or after the current owner, which
    makes merging independent of file processing order.
    """

    __slots__ = ("_owners",)

    def __init__(self) -> None:
        self._owners: Dict[Tuple[str, str], str] = {}

    def claim(self, area: str, slot: str, path: str) -> bool:
        current = self._owners.get((area, slot))
        if current is not None and path < current:
            return False
        self._owners[(area, slot)] = path
        return True


@dataclass(slots=True)
class ComponentEntity:
    """Aggregated record for one named UI component.

    Any subset of the fields may be populated; a component with styles only and
    no documentation is valid.
    """

    name: str
    files: Dict[str, str] = field(default_factory=dict)
    styles: Dict[str, str] = field(default_factory=dict)
    scripts: Dict[str, str] = field(default_factory=dict)
    templates: Dict[str, str] = field(default_factory=dict)
    documentation: str = ""
    schema: Optional[Dict[str, Any]] = None
    examples: List[ExampleRecord] = field(default_factory=list)
    _ownership: _SlotOwnership = field(
        default_factory=_SlotOwnership, repr=False, compare=False
    )

    def merge(self, fragment: Fragment) -> None:
        claim = self._ownership.claim
        path = fragment.path

        if fragment.kind == "style" and claim("styles", fragment.slot, path):
            self.styles[fragment.slot] = fragment.content
        elif fragment.kind == "script" and claim("scripts", fragment.slot, path):
            self.scripts[fragment.slot] = fragment.content
        elif fragment.kind == "template" and claim("templates", fragment.slot, path):
            self.templates[fragment.slot] = fragment.content
        elif fragment.kind == "schema" and claim("schema", "", path):
            self.schema = dict(fragment.data or {})
        elif fragment.kind == "documentation" and claim("documentation", "", path):
            self.documentation = fragment.content
        elif fragment.kind == "example":
            self._add_example(ExampleRecord(path=path, content=fragment.content, component=self.name))

        if claim("files", fragment.basename, path):
            self.files[fragment.basename] = fragment.content

    def _add_example(self, example: ExampleRecord) -> None:
        kept = [item for item in self.examples if item.path != example.path]
        kept.append(example)
        kept.sort(key=lambda item: item.path)
        self.examples = kept


@dataclass(slots=True)
class ModuleEntity:
    """Core module or utility: only files and documentation are tracked."""

    name: str
    files: Dict[str, str] = field(default_factory=dict)
    documentation: str = ""
    _ownership: _SlotOwnership = field(
        default_factory=_SlotOwnership, repr=False, compare=False
    )

    def merge(self, fragment: Fragment) -> None:
        if self._ownership.claim("files", fragment.basename, fragment.path):
            self.files[fragment.basename] = fragment.content
        if fragment.kind == "documentation" and self._ownership.claim(
            "documentation", "", fragment.path
        ):
            self.documentation = fragment.content
