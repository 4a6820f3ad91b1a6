"""Tests for path categorisation."""

from __future__ import annotations

import pytest

from dsfrdocs.ingestion.categorizer import CATEGORIES, categorize


class TestCategorize:
    """Test categorize precedence rules."""

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("src/component/button/button.scss", "component"),
            ("src/core/typography/main.scss", "core"),
            ("src/utility/spacing/spacing.scss", "utility"),
            ("src/analytics/tracker.js", "analytics"),
            ("example/page/index.html", "example"),
            ("src/schemes/whatever.schema.yml", "schema"),
            ("doc/intro.txt", "documentation"),
            ("README.md", "documentation"),
            ("src/main.scss", "style"),
            ("tool/build.js", "script"),
            ("config/settings.yml", "config"),
            ("config/settings.yaml", "config"),
            ("assets/logo.svg", "other"),
            ("", "other"),
        ],
    )
    def test_rules(self, path: str, expected: str) -> None:
        """Each rule produces its category."""
        assert categorize(path) == expected

    def test_component_beats_core(self) -> None:
        """First matching rule wins."""
        assert categorize("/src/core/component/button/button.scss") == "component"

    def test_example_under_component_is_component(self) -> None:
        """Component rule precedes the example rule."""
        assert categorize("/src/component/button/example/sample.html") == "component"

    def test_example_component_tree(self) -> None:
        """Component rule also matches example/component paths."""
        assert categorize("/example/component/button/index.html") == "component"

    def test_scheme_folds_into_other(self) -> None:
        """Colour schemes are reported as other, even for YAML or SCSS."""
        assert categorize("/src/scheme/dark.scss") == "other"
        assert categorize("/src/scheme/dark.schema.yml") == "other"

    def test_schema_beats_config(self) -> None:
        """A .schema.yml file is a schema, not config."""
        assert categorize("/src/button.schema.yml") == "schema"

    def test_case_sensitive(self) -> None:
        """Segment matching is case-sensitive."""
        assert categorize("/src/Component/button/x.txt") == "other"

    def test_backslash_paths(self) -> None:
        """Windows-style paths are normalised first."""
        assert categorize("src\\component\\button\\button.scss") == "component"

    def test_pure_and_total(self) -> None:
        """Always returns one of the known categories, consistently."""
        samples = ["a", "/x/y.md", "weird//path", "/component/", "no/ext"]
        for path in samples:
            first = categorize(path)
            assert first in CATEGORIES
            assert categorize(path) == first
