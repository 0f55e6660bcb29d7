"""repograde analyzers - external linters and audits behind one contract.

Adapters:
- ESLint, Stylelint, HTMLHint: source linters scored by error/warning counts
- Prettier: formatting check
- Markdownlint: Markdown style check
- npm audit, depcheck: dependency manifests
- Code scanning: GitHub code-scanning alerts
- SonarCloud, Codacy: results already held by hosted analysis services
"""

from repograde.analyzers.base import AnalyzerAdapter, FileLintAdapter, ManifestAdapter
from repograde.analyzers.codacy import CodacyAdapter
from repograde.analyzers.code_scanning import CodeScanningAdapter
from repograde.analyzers.depcheck import DepcheckAdapter
from repograde.analyzers.eslint import ESLintAdapter
from repograde.analyzers.htmlhint import HTMLHintAdapter
from repograde.analyzers.markdownlint import MarkdownlintAdapter
from repograde.analyzers.npm_audit import NpmAuditAdapter
from repograde.analyzers.prettier import PrettierAdapter
from repograde.analyzers.registry import ToolRegistry, get_registry, reset_registry
from repograde.analyzers.sonarcloud import SonarCloudAdapter
from repograde.analyzers.stylelint import StylelintAdapter

__all__ = [
    "AnalyzerAdapter",
    "CodacyAdapter",
    "CodeScanningAdapter",
    "DepcheckAdapter",
    "ESLintAdapter",
    "FileLintAdapter",
    "HTMLHintAdapter",
    "ManifestAdapter",
    "MarkdownlintAdapter",
    "NpmAuditAdapter",
    "PrettierAdapter",
    "SonarCloudAdapter",
    "StylelintAdapter",
    "ToolRegistry",
    "get_registry",
    "reset_registry",
    "setup_default_adapters",
]

DEFAULT_ADAPTERS: tuple[type[AnalyzerAdapter], ...] = (
    ESLintAdapter,
    PrettierAdapter,
    StylelintAdapter,
    HTMLHintAdapter,
    MarkdownlintAdapter,
    NpmAuditAdapter,
    DepcheckAdapter,
    CodeScanningAdapter,
    SonarCloudAdapter,
    CodacyAdapter,
)


def setup_default_adapters(registry: ToolRegistry | None = None) -> ToolRegistry:
    """Register all default tool adapters.

    Args:
        registry: Registry to populate (uses global if None)

    Returns:
        Populated ToolRegistry
    """
    if registry is None:
        registry = get_registry()

    for adapter_class in DEFAULT_ADAPTERS:
        registry.register(adapter_class)

    return registry
