"""Tool registry for pluggable analyzers.

The registry maps tool ids to adapter classes. Which tools run by default is
configured in YAML (``tools.default``), not hardcoded in the runner.
"""

from typing import Any

from repograde.analyzers.base import AnalyzerAdapter
from repograde.config import RepogradeConfig
from repograde.errors import ToolNotAvailableError
from repograde.providers.base import RemoteFileProvider


class ToolRegistry:
    """Registry of available analyzer adapters.

    Adding a new tool:
        1. Subclass FileLintAdapter, ManifestAdapter or AnalyzerAdapter
        2. Produce an AnalysisResult scored through ``repograde.scoring``
        3. Register it in ``setup_default_adapters``
        4. No changes needed to rest of codebase
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._adapters: dict[str, type[AnalyzerAdapter]] = {}

    def register(self, adapter_class: type[AnalyzerAdapter], name: str | None = None) -> None:
        """Register an adapter class.

        Args:
            adapter_class: Adapter class to register
            name: Tool id (defaults to the class's ``tool_id``)
        """
        tool_id = name or adapter_class.tool_id
        if not tool_id:
            raise ValueError(f"{adapter_class.__name__} has no tool_id")
        self._adapters[tool_id] = adapter_class

    def create(
        self,
        name: str,
        files: RemoteFileProvider,
        config: RepogradeConfig | None = None,
    ) -> AnalyzerAdapter:
        """Instantiate the adapter registered under ``name``.

        Raises:
            ToolNotAvailableError: If the tool is not registered
        """
        if name not in self._adapters:
            raise ToolNotAvailableError(
                name,
                f"Tool '{name}' not registered. Available: {self.list_tools()}",
            )
        return self._adapters[name](files, config)

    def list_tools(self) -> list[str]:
        """Registered tool ids in registration order."""
        return list(self._adapters.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._adapters

    def catalog(self) -> list[dict[str, Any]]:
        """Catalog entries for every registered tool."""
        return [cls.catalog_entry() for cls in self._adapters.values()]


# Global registry instance
_registry: ToolRegistry | None = None


def get_registry() -> ToolRegistry:
    """Get the global tool registry instance."""
    global _registry
    if _registry is None:
        _registry = ToolRegistry()
    return _registry


def reset_registry() -> None:
    """Reset the global registry (primarily for testing)."""
    global _registry
    _registry = None
