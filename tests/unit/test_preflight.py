"""Unit tests for preflight checks."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from repograde.config import GitHubConfig, RepogradeConfig
from repograde.models.llm_config import LLMConfig
from repograde.utils.preflight import PreflightChecker, PreflightResult, ToolCheck

WHICH = "repograde.utils.preflight.shutil.which"
RUN = "repograde.utils.preflight.subprocess.run"


def version_output(stdout: str, returncode: int = 0) -> MagicMock:
    return MagicMock(returncode=returncode, stdout=stdout, stderr="")


@pytest.fixture
def checker() -> PreflightChecker:
    return PreflightChecker(timeout=1)


class TestCommandChecks:
    """Tests for executable checks."""

    def test_command_found(self, checker: PreflightChecker) -> None:
        """Test a command on PATH reports its version."""
        with patch(WHICH, return_value="/usr/bin/npx"), patch(
            RUN, return_value=version_output("10.2.0\n")
        ):
            check = checker.check_command("npx", "Runs the linters")

        assert check.available is True
        assert check.version == "10.2.0"
        assert check.path == "/usr/bin/npx"

    def test_command_missing(self, checker: PreflightChecker) -> None:
        """Test a missing command is reported with its purpose."""
        with patch(WHICH, return_value=None):
            check = checker.check_command("npm", "Runs npm audit", required=False)

        assert check.available is False
        assert check.required is False
        assert check.message == "npm not found on PATH (Runs npm audit)"

    def test_version_timeout(self, checker: PreflightChecker) -> None:
        """Test a hanging --version yields no version."""
        with patch(RUN, side_effect=subprocess.TimeoutExpired(cmd="node", timeout=1)):
            assert checker.get_command_version("node") is None

    @pytest.mark.parametrize(
        "version,available",
        [("v20.11.1", True), ("v18.0.0", True), ("v16.20.2", False)],
    )
    def test_node_version(self, checker: PreflightChecker, version: str, available: bool) -> None:
        """Test the minimum Node.js major version."""
        with patch(WHICH, return_value="/usr/bin/node"), patch(
            RUN, return_value=version_output(version)
        ):
            check = checker.check_node()

        assert check.available is available
        if not available:
            assert "Node.js 18+ required" in check.message

    def test_node_missing(self, checker: PreflightChecker) -> None:
        """Test the install hint for a missing Node.js."""
        with patch(WHICH, return_value=None):
            check = checker.check_node()

        assert check.available is False
        assert "Install Node.js 18+" in check.message


class TestCredentialChecks:
    """Tests for credential and LLM checks."""

    def test_github_token(self, checker: PreflightChecker) -> None:
        """Test token presence."""
        with_token = RepogradeConfig(github=GitHubConfig(token="ghp_x"))

        assert checker.check_github_token(with_token).available is True
        assert checker.check_github_token(RepogradeConfig()).available is False

    def test_litellm_not_installed(self, checker: PreflightChecker) -> None:
        """Test the install hint when LiteLLM is missing."""
        with patch("importlib.util.find_spec", return_value=None):
            check = checker.check_litellm(required=False)

        assert check.available is False
        assert "pip install litellm" in check.message

    def test_llm_disabled(self, checker: PreflightChecker) -> None:
        """Test a config without an llm section."""
        check = checker.check_llm_provider(RepogradeConfig(), required=False)

        assert check.available is False
        assert check.name == "llm:groq"

    def test_llm_configured(self, checker: PreflightChecker) -> None:
        """Test configured providers pass without a live call."""
        config = RepogradeConfig(llm=LLMConfig(provider="openai", model="gpt-4o", api_key="k"))

        check = checker.check_llm_provider(config)

        assert check.available is True
        assert check.version == "gpt-4o"
        assert check.message == "Configured"

    def test_llm_connectivity_failure(self, checker: PreflightChecker) -> None:
        """Test a provider that does not answer."""
        config = RepogradeConfig(llm=LLMConfig(api_key="k"))

        with patch("repograde.utils.preflight.LLMClient") as client_cls:
            client_cls.return_value.check_available.return_value = False
            check = checker.check_llm_provider(config, connectivity=True)

        assert check.available is False
        assert "did not answer" in check.message


class TestPreflightResult:
    """Tests for result aggregation."""

    def test_optional_missing_is_warning(self) -> None:
        """Test optional prerequisites never fail the run."""
        result = PreflightResult()

        result.add_check(ToolCheck(name="node", available=True))
        result.add_check(ToolCheck(name="litellm", available=False, required=False))

        assert result.success is True
        assert result.warnings == ["Optional prerequisite missing: litellm"]

    def test_required_missing_is_error(self) -> None:
        """Test required prerequisites fail the run."""
        result = PreflightResult()

        result.add_check(ToolCheck(name="github-token", available=False))

        assert result.success is False
        assert result.errors == ["Required prerequisite missing: github-token"]
        assert result.to_dict()["checks"][0]["name"] == "github-token"

    def test_check_all_without_llm(self, checker: PreflightChecker) -> None:
        """Test a static run does not require the LLM."""
        config = RepogradeConfig(github=GitHubConfig(token="ghp_x"))

        with patch(WHICH, side_effect=lambda cmd: f"/usr/bin/{cmd}"), patch(
            RUN, return_value=version_output("v20.0.0")
        ):
            result = checker.check_all(config)

        assert result.success is True
        assert [c.name for c in result.checks][:4] == ["node", "npx", "npm", "github-token"]
