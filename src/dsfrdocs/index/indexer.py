"""Source and documentation ingestion pipeline."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Sequence

from dsfrdocs.config import AppConfig
from dsfrdocs.index.repository import SourceRepository
from dsfrdocs.ingestion.categorizer import categorize
from dsfrdocs.ingestion.documents import DocumentModelBuilder
from dsfrdocs.ingestion.extractor import ContentExtractor
from dsfrdocs.models import Document
from dsfrdocs.utils.files import iter_markdown_paths, iter_source_files, resolve_logical_path

LOGGER = logging.getLogger(__name__)


def find_sources(root: Path) -> list[Path]:
    """Find all ingestible files under the source root."""
    return list(iter_source_files(root))


def find_markdown(paths: Sequence[Path]) -> list[tuple[Path, str]]:
    """Markdown pages with their POSIX path relative to the input directory."""
    pages: list[tuple[Path, str]] = []
    for item in paths:
        for page in iter_markdown_paths([item]):
            relative = page.relative_to(item).as_posix() if item.is_dir() else page.name
            pages.append((page, relative))
    return pages


@dataclass(slots=True)
class IndexStats:
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    processed_files: list[Path] = field(default_factory=list)
    failed_files: list[Path] = field(default_factory=list)

    def increment(self, status: str, path: Path) -> None:
        if status == "processed":
            self.processed += 1
        elif status == "skipped":
            self.skipped += 1
        else:
            self.failed += 1
            self.failed_files.append(path)
        self.processed_files.append(path)

    def merge(self, other: "IndexStats") -> "IndexStats":
        return IndexStats(
            processed=self.processed + other.processed,
            skipped=self.skipped + other.skipped,
            failed=self.failed + other.failed,
            processed_files=self.processed_files + other.processed_files,
            failed_files=self.failed_files + other.failed_files,
        )


class Indexer:
    """Coordinates file ingestion into a :class:`SourceRepository`.

    Files are handled in fixed-size batches; the files of one batch are read
    and extracted concurrently and the whole batch is awaited before the next
    one starts.
    """

    def __init__(
        self,
        repository: SourceRepository,
        *,
        batch_size: int = 50,
        max_workers: int | None = None,
        extractor: ContentExtractor | None = None,
        builder: DocumentModelBuilder | None = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.repository = repository
        self.batch_size = batch_size
        self.max_workers = max_workers or batch_size
        self.extractor = extractor or ContentExtractor()
        self.builder = builder or DocumentModelBuilder()

    def index_sources(self, root: Path) -> IndexStats:
        """Categorise and extract every source file below ``root``."""
        files = find_sources(root)
        if not files:
            LOGGER.warning("No source files found in %s", root)
            return IndexStats()

        stats = self._run_batches(files, lambda path: self._index_source(path, root))
        LOGGER.info(
            "Sources: processed %d, skipped %d, failed %d",
            stats.processed,
            stats.skipped,
            stats.failed,
        )
        return stats

    def index_documents(self, paths: Sequence[Path]) -> IndexStats:
        """Build documents from Markdown pages and rebuild the search index once."""
        pages = find_markdown(paths)
        if not pages:
            LOGGER.warning("No documentation pages found")
            return IndexStats()

        built: List[tuple[Path, Document]] = []
        relative_paths = dict(pages)

        def build(path: Path) -> str:
            built.append((path, self._build_document(path, relative_paths[path])))
            return "processed"

        stats = self._run_batches([page for page, _ in pages], build)
        built.sort(key=lambda item: item[0])
        self.repository.add_documents(document for _, document in built)
        LOGGER.info("Documents: indexed %d, failed %d", stats.processed, stats.failed)
        return stats

    def index(self, source_root: Path, docs_root: Path) -> IndexStats:
        return self.index_sources(source_root).merge(self.index_documents([docs_root]))

    def _run_batches(self, files: Sequence[Path], task: Callable[[Path], str]) -> IndexStats:
        stats = IndexStats()

        def guarded(path: Path) -> str:
            try:
                return task(path)
            except Exception as exc:
                LOGGER.error("Failed to process %s: %s", path, exc)
                return "failed"

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            for start in range(0, len(files), self.batch_size):
                batch = files[start : start + self.batch_size]
                futures = [(path, executor.submit(guarded, path)) for path in batch]
                wait([future for _, future in futures])
                for path, future in futures:
                    stats.increment(future.result(), path)
                LOGGER.debug("Batch done: %d/%d files", start + len(batch), len(files))

        return stats

    def _index_source(self, path: Path, root: Path) -> str:
        """Process a single source file."""
        content = path.read_text(encoding="utf-8")
        logical_path = resolve_logical_path(path, root)
        category = categorize(logical_path)
        fragments = self.extractor.extract(category, logical_path, content)
        if not fragments:
            LOGGER.debug("Nothing to extract from %s (%s)", logical_path, category)
            return "skipped"
        for fragment in fragments:
            self.repository.apply(fragment)
        return "processed"

    def _build_document(self, path: Path, relative_path: str) -> Document:
        content = path.read_text(encoding="utf-8")
        return self.builder.build(path.name, content, relative_path=relative_path)


def build_repository(
    config: AppConfig, base_dir: Path | None = None
) -> tuple[SourceRepository, IndexStats]:
    """Ingest the configured source and documentation roots into a fresh repository."""
    repository = SourceRepository()
    indexer = Indexer(repository, batch_size=config.batch_size, max_workers=config.workers)
    stats = indexer.index(
        config.resolve_path(config.source_root, base_dir),
        config.resolve_path(config.docs_root, base_dir),
    )
    return repository, stats
