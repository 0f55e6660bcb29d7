"""Unit tests for ToolRegistry."""

from pathlib import Path

import pytest

from repograde.analyzers import DEFAULT_ADAPTERS, setup_default_adapters
from repograde.analyzers.base import AnalyzerAdapter
from repograde.analyzers.registry import (
    ToolRegistry,
    get_registry,
    reset_registry,
)
from repograde.errors import ToolNotAvailableError
from repograde.models.analysis import AnalysisResult


class MockAdapter(AnalyzerAdapter):
    """Mock adapter for testing."""

    tool_id = "mock"
    display_name = "Mock"
    description = "Mock analyzer"
    features = ("Nothing",)
    requires_workdir = False

    def _analyze(self, owner: str, repo: str, workdir: Path | None) -> AnalysisResult:
        return AnalysisResult.scored(self.tool_id, f"{owner}/{repo}", 100, 0, [], {})


class NamelessAdapter(MockAdapter):
    """Adapter without a tool id."""

    tool_id = ""


class TestToolRegistry:
    """Tests for ToolRegistry."""

    def test_register_and_create(self, empty_files) -> None:
        """Test registering an adapter and creating an instance."""
        registry = ToolRegistry()
        registry.register(MockAdapter)

        adapter = registry.create("mock", empty_files)

        assert isinstance(adapter, MockAdapter)
        assert adapter.files is empty_files
        assert "mock" in registry

    def test_register_under_alias(self) -> None:
        """Test an explicit name overrides tool_id."""
        registry = ToolRegistry()
        registry.register(MockAdapter, name="alias")

        assert registry.list_tools() == ["alias"]

    def test_register_without_id_rejected(self) -> None:
        """Test adapters need a tool id."""
        with pytest.raises(ValueError, match="has no tool_id"):
            ToolRegistry().register(NamelessAdapter)

    def test_create_unknown(self, empty_files) -> None:
        """Test creating an unregistered tool raises ToolNotAvailableError."""
        registry = ToolRegistry()

        with pytest.raises(ToolNotAvailableError, match="not registered"):
            registry.create("nope", empty_files)

    def test_catalog(self) -> None:
        """Test catalog entries come from the class attributes."""
        registry = ToolRegistry()
        registry.register(MockAdapter)

        assert registry.catalog() == [
            {
                "id": "mock",
                "name": "Mock",
                "description": "Mock analyzer",
                "features": ["Nothing"],
                "note": None,
            }
        ]


class TestGlobalRegistry:
    """Tests for the global registry helpers."""

    def test_get_registry_is_singleton(self) -> None:
        """Test get_registry returns the same instance until reset."""
        first = get_registry()

        assert get_registry() is first
        reset_registry()
        assert get_registry() is not first

    def test_setup_default_adapters(self) -> None:
        """Test every default adapter is registered in order."""
        registry = setup_default_adapters()

        assert registry is get_registry()
        assert registry.list_tools() == [cls.tool_id for cls in DEFAULT_ADAPTERS]
        assert registry.list_tools() == [
            "eslint",
            "prettier",
            "stylelint",
            "htmlhint",
            "markdownlint",
            "npm-audit",
            "depcheck",
            "code-scanning",
            "sonarcloud",
            "codacy",
        ]

    def test_catalog_entries_are_complete(self) -> None:
        """Test every default tool describes itself."""
        for entry in setup_default_adapters(ToolRegistry()).catalog():
            assert entry["id"]
            assert entry["name"]
            assert entry["description"]
            assert entry["features"]
