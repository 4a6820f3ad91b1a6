"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS

CATEGORY_LABELS: Dict[str, Dict[str, str]] = {
    "component": {
        "name": "Components",
        "description": "Interface elements: buttons, forms, cards, navigation...",
    },
    "core": {
        "name": "Fundamentals",
        "description": "Core styles: typography, colours, grid, spacing.",
    },
    "analytics": {
        "name": "Analytics",
        "description": "Audience measurement and tracking tools.",
    },
    "pattern": {
        "name": "Patterns",
        "description": "Reusable interaction patterns built from components.",
    },
    "template": {
        "name": "Page templates",
        "description": "Complete page layouts.",
    },
}


def _default_ttls() -> Dict[str, int]:
    return {
        "search": 10 * MINUTE_MS,
        "component": 30 * MINUTE_MS,
        "categories": HOUR_MS,
        "patterns": 15 * MINUTE_MS,
        "icons": HOUR_MS,
        "colors": 2 * HOUR_MS,
    }


@dataclass(slots=True)
class AppConfig:
    source_root: Path = Path("data/dsfr-source")
    docs_root: Path = Path("data/fiches-markdown-v2")
    batch_size: int = 50
    max_workers: int | None = None
    search_threshold: float = 0.3
    search_limit: int = 10
    cache_max_memory: int = 50 * 1024 * 1024
    cache_default_ttl_ms: int = 30 * MINUTE_MS
    cache_cleanup_interval: float = 300.0
    cache_compression: bool = True
    cache_compression_threshold: int = 1024
    ttl_ms: Dict[str, int] = field(default_factory=_default_ttls)

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if not 0.0 <= self.search_threshold <= 1.0:
            raise ValueError("search_threshold must be between 0 and 1")

    @property
    def workers(self) -> int:
        return self.max_workers or self.batch_size

    def ttl_for(self, operation: str) -> int:
        return self.ttl_ms.get(operation, self.cache_default_ttl_ms)

    @staticmethod
    def resolve_path(path: Path, base_dir: Path | None = None) -> Path:
        if Path(path).is_absolute() or base_dir is None:
            return Path(path)
        return base_dir / path
