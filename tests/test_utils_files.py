"""Tests for file utility functions."""

from __future__ import annotations

import json
from pathlib import Path

from dsfrdocs.utils.files import (
    is_ingestible,
    iter_markdown_paths,
    iter_source_files,
    normalize_logical_path,
    resolve_logical_path,
)


class TestIsIngestible:
    """Test is_ingestible filter."""

    def test_regular_file(self) -> None:
        """Should accept content files."""
        assert is_ingestible(Path("button.scss"))

    def test_sidecar_index_and_hidden(self) -> None:
        """Should reject sidecars, indexes and hidden files."""
        assert not is_ingestible(Path("button.scss.meta.json"))
        assert not is_ingestible(Path("index.json"))
        assert not is_ingestible(Path(".DS_Store"))


class TestIterSourceFiles:
    """Test iter_source_files function."""

    def test_walks_recursively_in_order(self, tmp_path: Path) -> None:
        """Should yield nested files sorted, skipping metadata."""
        (tmp_path / "components").mkdir()
        (tmp_path / "components" / "b.scss").write_text("b")
        (tmp_path / "components" / "a.js").write_text("a")
        (tmp_path / "components" / "a.js.meta.json").write_text("{}")
        (tmp_path / "index.json").write_text("{}")

        paths = list(iter_source_files(tmp_path))

        assert [p.name for p in paths] == ["a.js", "b.scss"]

    def test_skips_hidden_directories(self, tmp_path: Path) -> None:
        """Should not descend into hidden directories."""
        hidden = tmp_path / ".git"
        hidden.mkdir()
        (hidden / "config").write_text("x")
        (tmp_path / "kept.md").write_text("x")

        assert [p.name for p in iter_source_files(tmp_path)] == ["kept.md"]

    def test_missing_root(self, tmp_path: Path) -> None:
        """Should yield nothing for a missing root."""
        assert list(iter_source_files(tmp_path / "missing")) == []


class TestIterMarkdownPaths:
    """Test iter_markdown_paths function."""

    def test_directory_and_file_inputs(self, tmp_path: Path) -> None:
        """Should find Markdown files in directories and accept explicit files."""
        sub = tmp_path / "sub"
        sub.mkdir()
        (tmp_path / "a.md").write_text("a")
        (sub / "b.md").write_text("b")
        (tmp_path / "c.txt").write_text("c")

        names = {p.name for p in iter_markdown_paths([tmp_path])}

        assert names == {"a.md", "b.md"}
        assert list(iter_markdown_paths([tmp_path / "a.md"])) == [tmp_path / "a.md"]


class TestNormalizeLogicalPath:
    """Test normalize_logical_path."""

    def test_adds_leading_slash(self) -> None:
        """Relative paths gain a leading slash."""
        assert normalize_logical_path("component/button/x.scss") == "/component/button/x.scss"

    def test_converts_backslashes(self) -> None:
        """Windows separators become forward slashes."""
        assert normalize_logical_path("src\\core\\x.scss") == "/src/core/x.scss"

    def test_idempotent(self) -> None:
        """Already-normalised paths are unchanged."""
        assert normalize_logical_path("/a/b") == "/a/b"


class TestResolveLogicalPath:
    """Test resolve_logical_path."""

    def test_sidecar_wins(self, tmp_path: Path) -> None:
        """Should use originalPath from the sidecar."""
        content = tmp_path / "components" / "flat.scss"
        content.parent.mkdir()
        content.write_text("x")
        sidecar = content.with_name("flat.scss.meta.json")
        sidecar.write_text(json.dumps({"originalPath": "src/component/button/button.scss"}))

        assert resolve_logical_path(content, tmp_path) == "/src/component/button/button.scss"

    def test_flattened_name(self, tmp_path: Path) -> None:
        """Should unfold double underscores when no sidecar exists."""
        content = tmp_path / "src__component__card__card.scss"
        content.write_text("x")

        assert resolve_logical_path(content, tmp_path) == "/src/component/card/card.scss"

    def test_broken_sidecar_falls_back(self, tmp_path: Path) -> None:
        """Should ignore unreadable sidecars."""
        content = tmp_path / "component" / "tag" / "tag.scss"
        content.parent.mkdir(parents=True)
        content.write_text("x")
        content.with_name("tag.scss.meta.json").write_text("{not json")

        assert resolve_logical_path(content, tmp_path) == "/component/tag/tag.scss"

    def test_relative_path(self, tmp_path: Path) -> None:
        """Should use the path relative to the root."""
        content = tmp_path / "component" / "button" / "button.md"
        content.parent.mkdir(parents=True)
        content.write_text("x")

        assert resolve_logical_path(content, tmp_path) == "/component/button/button.md"
