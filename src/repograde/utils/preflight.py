"""Preflight validation.

Checks the external prerequisites of a run before any repository is touched:
the Node.js tool chain the analyzers shell out to, the GitHub credential and,
for dynamic runs, the LLM provider.
"""

import importlib.util
import shutil
import subprocess
from dataclasses import dataclass, field
from typing import Any

from repograde.config import RepogradeConfig
from repograde.llm.client import LLMClient

# Oldest Node.js major version the pinned linters support
MIN_NODE_MAJOR = 18


@dataclass
class ToolCheck:
    """Result of checking a single prerequisite.

    Attributes:
        name: Prerequisite name
        available: Whether it is available
        version: Version if known
        required: Whether it is required for this run
        path: Executable path or endpoint
        message: Status message (human-readable context)
    """

    name: str
    available: bool
    version: str | None = None
    required: bool = True
    path: str | None = None
    message: str = ""


@dataclass
class PreflightResult:
    """Result of preflight validation.

    Attributes:
        success: Whether all required prerequisites are available
        checks: Individual check results
        errors: Error messages for missing required prerequisites
        warnings: Warning messages for missing optional prerequisites
    """

    success: bool = True
    checks: list[ToolCheck] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_check(self, check: ToolCheck) -> None:
        """Add a check result."""
        self.checks.append(check)

        if not check.available:
            if check.required:
                self.success = False
                self.errors.append(f"Required prerequisite missing: {check.name}")
            else:
                self.warnings.append(f"Optional prerequisite missing: {check.name}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "success": self.success,
            "checks": [
                {
                    "name": c.name,
                    "available": c.available,
                    "version": c.version,
                    "required": c.required,
                    "path": c.path,
                    "message": c.message,
                }
                for c in self.checks
            ],
            "errors": self.errors,
            "warnings": self.warnings,
        }


class PreflightChecker:
    """Validates prerequisites before analysis.

    Usage:
        checker = PreflightChecker()
        result = checker.check_all(config)
        if not result.success:
            sys.exit(1)
    """

    def __init__(self, timeout: int = 10) -> None:
        """Initialize preflight checker.

        Args:
            timeout: Timeout in seconds for version checks
        """
        self.timeout = timeout

    def get_command_version(self, command: str) -> str | None:
        """First line of ``<command> --version``, None when it fails."""
        try:
            result = subprocess.run(
                [command, "--version"],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (subprocess.TimeoutExpired, FileNotFoundError, OSError):
            return None
        if result.returncode != 0:
            return None
        output = result.stdout.strip() or result.stderr.strip()
        return output.split("\n")[0] if output else None

    def check_command(self, command: str, purpose: str, required: bool = True) -> ToolCheck:
        """Check that an executable is on PATH and reports a version."""
        path = shutil.which(command)
        if path is None:
            return ToolCheck(
                name=command,
                available=False,
                required=required,
                message=f"{command} not found on PATH ({purpose})",
            )
        return ToolCheck(
            name=command,
            available=True,
            version=self.get_command_version(command),
            required=required,
            path=path,
            message=purpose,
        )

    def check_node(self) -> ToolCheck:
        """Check Node.js is installed and recent enough."""
        check = self.check_command("node", "Runtime for the linters")
        if not check.available or not check.version:
            if check.available:
                check.available = False
                check.message = "Could not determine the Node.js version"
            else:
                check.message += ". Install Node.js 18+ from https://nodejs.org"
            return check

        try:
            major = int(check.version.lstrip("v").split(".")[0])
        except ValueError:
            return check
        if major < MIN_NODE_MAJOR:
            check.available = False
            check.message = f"Node.js {MIN_NODE_MAJOR}+ required (found {check.version})"
        return check

    def check_github_token(self, config: RepogradeConfig) -> ToolCheck:
        """Check that a GitHub token is configured."""
        if config.github.token:
            return ToolCheck(
                name="github-token",
                available=True,
                path=config.github.api_base,
                message="GitHub token configured",
            )
        return ToolCheck(
            name="github-token",
            available=False,
            path=config.github.api_base,
            message="Set github.token (e.g. token: \"${GITHUB_TOKEN}\") in the config file",
        )

    def check_litellm(self, required: bool = True) -> ToolCheck:
        """Check if the LiteLLM package is importable."""
        spec = importlib.util.find_spec("litellm")
        if spec is None:
            return ToolCheck(
                name="litellm",
                available=False,
                required=required,
                message="Install with: pip install litellm",
            )

        from importlib.metadata import PackageNotFoundError, version

        try:
            litellm_version: str | None = version("litellm")
        except PackageNotFoundError:
            litellm_version = None
        return ToolCheck(
            name="litellm",
            available=True,
            version=litellm_version,
            required=required,
            path=spec.origin,
            message="Unified LLM interface (Python package)",
        )

    def check_llm_provider(
        self,
        config: RepogradeConfig,
        required: bool = True,
        connectivity: bool = False,
    ) -> ToolCheck:
        """Check the LLM provider settings, optionally with a live call.

        Args:
            config: Configuration holding the llm section
            required: Whether the LLM is required for this run
            connectivity: Also issue a minimal completion request
        """
        llm = config.llm
        name = f"llm:{llm.provider}"
        if not llm.enabled:
            return ToolCheck(
                name=name,
                available=False,
                required=required,
                message="LLM disabled; add an llm section to run dynamic tests",
            )

        if connectivity and not LLMClient(llm, retry=config.retry).check_available():
            return ToolCheck(
                name=name,
                available=False,
                required=required,
                path=llm.api_base,
                message=f"{llm.provider} did not answer a test completion",
            )

        return ToolCheck(
            name=name,
            available=True,
            version=llm.model,
            required=required,
            path=llm.api_base,
            message="Reachable" if connectivity else "Configured",
        )

    def check_all(
        self,
        config: RepogradeConfig,
        require_llm: bool = False,
        connectivity: bool = False,
    ) -> PreflightResult:
        """Run all preflight checks.

        Args:
            config: Loaded configuration
            require_llm: Whether the LLM is required (dynamic runs)
            connectivity: Whether to test the LLM with a live call

        Returns:
            PreflightResult with all check results
        """
        result = PreflightResult()

        result.add_check(self.check_node())
        result.add_check(self.check_command(config.tools.npx, "Runs the linters"))
        result.add_check(self.check_command(config.tools.npm, "Runs npm audit"))
        result.add_check(self.check_github_token(config))
        result.add_check(self.check_litellm(required=require_llm))
        result.add_check(
            self.check_llm_provider(config, required=require_llm, connectivity=connectivity)
        )

        return result
