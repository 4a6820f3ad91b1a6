"""Tests for application configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from dsfrdocs.config import CATEGORY_LABELS, HOUR_MS, MINUTE_MS, AppConfig


class TestAppConfig:
    """Test AppConfig dataclass."""

    def test_default_config(self) -> None:
        """Should create config with default values."""
        config = AppConfig()

        assert config.source_root == Path("data/dsfr-source")
        assert config.docs_root == Path("data/fiches-markdown-v2")
        assert config.batch_size == 50
        assert config.search_threshold == 0.3
        assert config.cache_max_memory == 50 * 1024 * 1024
        assert config.cache_compression is True

    def test_workers_default_to_batch_size(self) -> None:
        """Worker count follows the batch size unless overridden."""
        assert AppConfig(batch_size=8).workers == 8
        assert AppConfig(batch_size=8, max_workers=2).workers == 2

    def test_operation_ttls(self) -> None:
        """Volatile operations expire sooner than near-static ones."""
        config = AppConfig()

        assert config.ttl_for("search") == 10 * MINUTE_MS
        assert config.ttl_for("categories") == HOUR_MS
        assert config.ttl_for("colors") == 2 * HOUR_MS
        assert config.ttl_for("search") < config.ttl_for("colors")

    def test_unknown_operation_uses_default_ttl(self) -> None:
        """Should fall back to the default cache TTL."""
        config = AppConfig(cache_default_ttl_ms=1234)

        assert config.ttl_for("something-else") == 1234

    def test_ttl_maps_are_not_shared(self) -> None:
        """Each config gets its own TTL mapping."""
        first, second = AppConfig(), AppConfig()
        first.ttl_ms["search"] = 1

        assert second.ttl_for("search") == 10 * MINUTE_MS

    @pytest.mark.parametrize("threshold", [-0.1, 1.5])
    def test_invalid_threshold(self, threshold: float) -> None:
        """Should reject thresholds outside [0, 1]."""
        with pytest.raises(ValueError):
            AppConfig(search_threshold=threshold)

    def test_invalid_batch_size(self) -> None:
        """Should reject empty batches."""
        with pytest.raises(ValueError):
            AppConfig(batch_size=0)

    def test_resolve_path_absolute(self) -> None:
        """Should return absolute path as-is."""
        assert AppConfig.resolve_path(Path("/abs/src"), Path("/base")) == Path("/abs/src")

    def test_resolve_path_relative_no_base(self) -> None:
        """Should return relative path when no base_dir provided."""
        assert AppConfig.resolve_path(Path("rel/src")) == Path("rel/src")

    def test_resolve_path_relative_with_base(self) -> None:
        """Should resolve relative path against base_dir."""
        assert AppConfig.resolve_path(Path("rel/src"), Path("/base")) == Path("/base/rel/src")


class TestCategoryLabels:
    """Test category display labels."""

    def test_every_label_has_name_and_description(self) -> None:
        """Should describe every known document category."""
        for key in ("component", "core", "analytics", "pattern", "template"):
            assert CATEGORY_LABELS[key]["name"]
            assert "description" in CATEGORY_LABELS[key]
