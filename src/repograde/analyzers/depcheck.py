"""depcheck adapter.

Compares the dependencies declared in ``package.json`` with the modules the
JavaScript sources actually import. The sources are materialized next to the
manifest, up to the ESLint file cap.
https://github.com/depcheck/depcheck
"""

import logging
from pathlib import Path
from typing import Any

from repograde.analyzers.base import ManifestAdapter
from repograde.errors import ToolExecutionError
from repograde.models.analysis import AnalysisResult, Issue
from repograde.providers.base import list_files_with_extensions
from repograde.scoring import dependency_score
from repograde.suggestions import dependency_suggestion

logger = logging.getLogger(__name__)

DEPCHECK_PACKAGE = "depcheck@1"
MAX_PER_CLASS = 30
MAX_SOURCE_FILES = 50
SOURCE_EXTENSIONS = frozenset({"js", "jsx", "ts", "tsx", "mjs", "cjs", "vue"})


class DepcheckAdapter(ManifestAdapter):
    """Unused and missing dependency check."""

    tool_id = "depcheck"
    display_name = "depcheck"
    description = "Unused and missing npm dependencies"
    features = ("Unused dependencies", "Unused dev dependencies", "Missing dependencies")
    required_manifests = ("package.json",)

    def check(
        self,
        owner: str,
        repo: str,
        workdir: Path,
        manifests: dict[str, str],
    ) -> AnalysisResult:
        sources = list_files_with_extensions(self.files, owner, repo, SOURCE_EXTENSIONS)
        written = self.materialize(owner, repo, sources[:MAX_SOURCE_FILES], workdir)
        logger.debug("depcheck: %d source files materialized", len(written))

        # depcheck exits non-zero whenever it finds something
        result = self.run_tool(
            self.npx(DEPCHECK_PACKAGE, "--json", "."),
            cwd=workdir,
            ok_codes=None,
        )
        report = self.parse_json(result.stdout, result.stderr)
        if not isinstance(report, dict):
            raise ToolExecutionError(self.tool_id, "Unexpected depcheck report format")

        return self._to_result(owner, repo, report, len(written) + 1)

    def _to_result(
        self,
        owner: str,
        repo: str,
        report: dict[str, Any],
        files_analyzed: int,
    ) -> AnalysisResult:
        unused = list(report.get("dependencies") or [])
        unused_dev = list(report.get("devDependencies") or [])
        missing: dict[str, list[str]] = dict(report.get("missing") or {})

        issues: list[Issue] = []
        for name in unused[:MAX_PER_CLASS]:
            issues.append(self._issue(name, "unused", f"Unused dependency: {name}"))
        for name in unused_dev[:MAX_PER_CLASS]:
            issues.append(
                self._issue(name, "devUnused", f"Unused dev dependency: {name}")
            )
        for name, used_in in list(missing.items())[:MAX_PER_CLASS]:
            message = f"Missing dependency: {name}"
            if used_in:
                message += f" (used in {', '.join(used_in[:3])})"
            issues.append(self._issue(name, "missing", message, severity="error"))

        unused_total = len(unused) + len(unused_dev)

        return AnalysisResult.scored(
            tool=self.tool_id,
            repository=f"{owner}/{repo}",
            score=dependency_score(
                len(unused), len(unused_dev), len(missing), self.scoring.dependency
            ),
            files_analyzed=files_analyzed,
            issues=issues,
            summary={
                "unused": len(unused),
                "unused_dev": len(unused_dev),
                "missing": len(missing),
            },
            headline=f"Found {unused_total} unused and {len(missing)} missing dependencies",
            details={
                "unused_dependencies": unused,
                "unused_dev_dependencies": unused_dev,
                "missing_dependencies": sorted(missing),
            },
        )

    @staticmethod
    def _issue(name: str, kind: str, message: str, severity: str = "warning") -> Issue:
        suggestion = dependency_suggestion(kind)
        return Issue(
            file="package.json",
            message=message,
            rule_id=kind,
            severity=severity,
            suggestion=suggestion.suggestion.replace("<package-name>", name),
            fix_title=suggestion.title,
            package=name,
        )
