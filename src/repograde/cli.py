"""repograde CLI interface.

Commands:
- tools: List the available analyzers
- check: Validate prerequisites (Node.js tool chain, GitHub token, LLM)
- init: Initialize repograde configuration
- run: Run analyzers against a repository
- full: Run the heuristic full test of a repository
- dynamic: Generate a CI workflow and an AI quality report
- commit: Commit a generated workflow to a repository
- watch: Run a committed workflow on GitHub Actions and summarize it
- history: Show saved testing records
- stats: Show averages and grade distribution of saved records

Global options:
- --config: Path to configuration file
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON log lines for CI/CD
- --version: Show version and exit
"""

import json
import logging
from pathlib import Path
from typing import Annotated

import typer

from repograde import __version__
from repograde.config import RepogradeConfig, create_default_config, load_config
from repograde.models.analysis import DynamicTestResult, RecordStatus, TestingRecord
from repograde.models.repository import RepoRef
from repograde.store import ResultStore
from repograde.templates import ReportRenderer
from repograde.utils.logging import configure_from_cli

app = typer.Typer(
    name="repograde",
    help="Grade GitHub repositories with linters, audits and AI-generated workflows",
    add_completion=False,
    no_args_is_help=True,
)

# Global state
_config: RepogradeConfig | None = None
_logger = logging.getLogger("repograde.cli")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"repograde {__version__}")
        raise typer.Exit()


def _get_config() -> RepogradeConfig:
    return _config or RepogradeConfig()


def _parse_target(target: str) -> RepoRef:
    try:
        return RepoRef.parse(target)
    except ValueError as e:
        _logger.error(str(e))
        raise typer.Exit(1)


def _store(config: RepogradeConfig) -> ResultStore:
    return ResultStore(Path(config.store.path))


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output with timestamps",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress info messages (warnings and errors only)",
        ),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option(
            "--ci",
            help="Enable CI mode with JSON log lines",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """repograde - multi-tool code-quality grades for GitHub repositories.

    Runs established linters and audits against a repository, normalizes
    their findings to a 0-100 score and a letter grade, and can have an LLM
    write a CI workflow for the repository.
    """
    global _config

    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)

    try:
        _config = load_config(config_path=config)
        if _config.config_path:
            _logger.debug(f"Loaded config from: {_config.config_path}")
    except FileNotFoundError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    except Exception as e:
        _logger.error(f"Failed to load config: {e}")
        raise typer.Exit(1)


# =============================================================================
# tools command
# =============================================================================


@app.command()
def tools(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output the catalog as JSON"),
    ] = False,
) -> None:
    """List the available analyzers."""
    from repograde.runner import list_available_tests

    catalog = list_available_tests()

    if json_output:
        typer.echo(json.dumps(catalog, indent=2))
        return

    typer.echo("\nAvailable tests\n")
    for entry in catalog:
        typer.echo(f"  {entry['id']:<14} {entry['name']} - {entry['description']}")
        for feature in entry["features"]:
            typer.echo(f"                 • {feature}")
        if entry["note"]:
            typer.echo(f"                 Note: {entry['note']}")
    typer.echo()


# =============================================================================
# check command
# =============================================================================


@app.command()
def check(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output results as JSON"),
    ] = False,
    llm: Annotated[
        bool,
        typer.Option("--llm", help="Treat the LLM as required (dynamic tests)"),
    ] = False,
    connect: Annotated[
        bool,
        typer.Option("--connect", help="Test the LLM with a live request"),
    ] = False,
) -> None:
    """Validate prerequisites.

    Exit codes:
        0: All required prerequisites available
        1: One or more required prerequisites missing
        2: Only optional prerequisites missing (warnings)
    """
    from repograde.utils.preflight import PreflightChecker

    result = PreflightChecker().check_all(
        _get_config(), require_llm=llm, connectivity=connect
    )

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        typer.echo("\n🔍 Preflight Check Results\n")

        for check_result in result.checks:
            status = "✅" if check_result.available else "❌"
            version_str = f" ({check_result.version})" if check_result.version else ""
            required_str = " [required]" if check_result.required else " [optional]"

            typer.echo(f"  {status} {check_result.name}{version_str}{required_str}")
            if check_result.available and check_result.path:
                typer.echo(f"     └─ {check_result.path}")
            elif not check_result.available:
                typer.echo(f"     └─ {check_result.message}")

        typer.echo()

    if result.errors:
        if not json_output:
            typer.echo("❌ Preflight check FAILED")
            for error in result.errors:
                typer.echo(f"   • {error}")
        raise typer.Exit(1)
    if result.warnings:
        if not json_output:
            typer.echo("⚠️  Preflight check passed with WARNINGS")
            for warning in result.warnings:
                typer.echo(f"   • {warning}")
        raise typer.Exit(2)
    if not json_output:
        typer.echo("✅ All preflight checks passed")


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite existing config"),
    ] = False,
) -> None:
    """Initialize repograde configuration in ./.repograde/config.yaml."""
    config_dir = Path(".repograde")
    config_file = config_dir / "config.yaml"

    if config_file.exists() and not force:
        _logger.error(f"Config already exists: {config_file}")
        _logger.info("Use --force to overwrite")
        raise typer.Exit(1)

    config_dir.mkdir(exist_ok=True)
    config_file.write_text(create_default_config(), encoding="utf-8")
    _logger.info(f"Created config: {config_file}")

    typer.echo("\n✅ repograde configuration initialized")
    typer.echo(f"   Config: {config_file}")
    typer.echo("   Set GITHUB_TOKEN (and GROQ_API_KEY for dynamic tests) before running")


# =============================================================================
# run command
# =============================================================================


def _print_record(record: TestingRecord) -> None:
    typer.echo(f"\n📊 {record.repository}: {record.overall_score}/100 ({record.grade.value})\n")
    for tool, entry in record.results.items():
        if entry["status"] == RecordStatus.COMPLETED.value:
            typer.echo(
                f"  ✅ {tool:<14} {entry['score']:>3}  {entry['grade']:<2}  {entry.get('headline', '')}"
            )
        elif entry["status"] == RecordStatus.NOT_CONFIGURED.value:
            typer.echo(f"  ➖ {tool:<14}   -      {entry.get('message', '')}")
        else:
            typer.echo(f"  ❌ {tool:<14}   0  F   {entry.get('message', '')}")
    typer.echo()


@app.command()
def run(
    target: Annotated[str, typer.Argument(help="Repository as owner/repo")],
    tool: Annotated[
        list[str] | None,
        typer.Option(
            "--tool",
            "-t",
            help="Tool to run (repeatable; defaults to tools.default)",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output the record as JSON"),
    ] = False,
    markdown: Annotated[
        bool,
        typer.Option("--markdown", help="Output a Markdown report"),
    ] = False,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the report to a file"),
    ] = None,
    save: Annotated[
        bool,
        typer.Option("--save", help="Save the record to the history store"),
    ] = False,
    fail_under: Annotated[
        int | None,
        typer.Option(
            "--fail-under",
            min=0,
            max=100,
            help="Exit with code 1 when the overall score is below this value",
        ),
    ] = None,
) -> None:
    """Run analyzers against a repository."""
    from repograde.runner import run_multiple

    config = _get_config()
    ref = _parse_target(target)
    store = _store(config) if save else None

    record = run_multiple(
        list(tool or []),
        ref.owner,
        ref.repo,
        config.github.token,
        config,
        store=store,
    )

    if json_output or config.ci.json_output:
        report = json.dumps(record.to_dict(), indent=2)
    elif markdown:
        report = ReportRenderer().render_record(record)
    else:
        report = None

    if report is not None and output is not None:
        output.write_text(report, encoding="utf-8")
        _logger.info(f"Report written to: {output}")
    elif report is not None:
        typer.echo(report)
    else:
        _print_record(record)

    threshold = fail_under if fail_under is not None else config.ci.fail_under
    if record.status == RecordStatus.ERROR:
        raise typer.Exit(1)
    if threshold is not None and record.overall_score < threshold:
        _logger.error(f"Overall score {record.overall_score} is below {threshold}")
        raise typer.Exit(1)


# =============================================================================
# full command
# =============================================================================


@app.command()
def full(
    target: Annotated[str, typer.Argument(help="Repository as owner/repo")],
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output the record as JSON"),
    ] = False,
    save: Annotated[
        bool,
        typer.Option("--save", help="Save the record to the history store"),
    ] = False,
    fail_under: Annotated[
        int | None,
        typer.Option(
            "--fail-under",
            min=0,
            max=100,
            help="Exit with code 1 when the overall score is below this value",
        ),
    ] = None,
) -> None:
    """Run the heuristic full test (quality, security, tests, performance, AI review)."""
    from repograde.runner import run_full_test

    config = _get_config()
    ref = _parse_target(target)

    record = run_full_test(
        ref.owner,
        ref.repo,
        config.github.token,
        config,
        store=_store(config) if save else None,
    )

    if json_output or config.ci.json_output:
        typer.echo(json.dumps(record.to_dict(), indent=2))
    else:
        _print_record(record)

    threshold = fail_under if fail_under is not None else config.ci.fail_under
    if record.status == RecordStatus.ERROR:
        raise typer.Exit(1)
    if threshold is not None and record.overall_score < threshold:
        _logger.error(f"Overall score {record.overall_score} is below {threshold}")
        raise typer.Exit(1)


# =============================================================================
# dynamic command
# =============================================================================


def _print_dynamic(result: DynamicTestResult) -> None:
    typer.echo(
        f"\n🤖 {result.test_type} on {result.repository}: "
        f"{result.score}/100 ({result.grade.value}) - {result.conclusion}\n"
    )
    typer.echo(result.analysis)
    for issue in result.details.get("issues", []):
        typer.echo(f"  • {issue}")
    recommendations = result.details.get("recommendations", [])
    if recommendations:
        typer.echo("\nRecommendations:")
        for recommendation in recommendations:
            typer.echo(f"  • {recommendation}")
    typer.echo()


@app.command()
def dynamic(
    target: Annotated[str, typer.Argument(help="Repository as owner/repo")],
    test_type: Annotated[
        str,
        typer.Option(
            "--type",
            "-t",
            help="eslint, prettier, jest, security, performance, accessibility, ...",
        ),
    ] = "eslint",
    commit: Annotated[
        bool,
        typer.Option("--commit", help="Commit the generated workflow"),
    ] = False,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the generated workflow to a file"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output the result as JSON"),
    ] = False,
    markdown: Annotated[
        bool,
        typer.Option("--markdown", help="Output a Markdown report"),
    ] = False,
    save: Annotated[
        bool,
        typer.Option("--save", help="Save the result to the history store"),
    ] = False,
) -> None:
    """Generate a CI workflow and an AI quality report.

    The workflow is only written to the repository with --commit.
    """
    from repograde.runner import commit_generated_workflow, dynamic_record, run_dynamic_test

    config = _get_config()
    ref = _parse_target(target)

    result = run_dynamic_test(test_type, ref.owner, ref.repo, config.github.token, config)

    if save or config.runner.save_results:
        try:
            _store(config).save(dynamic_record(result))
        except OSError as e:
            _logger.error(f"Could not save result: {e}")

    if json_output or config.ci.json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    elif markdown:
        typer.echo(ReportRenderer().render_dynamic(result))
    elif result.success:
        _print_dynamic(result)

    if not result.success:
        _logger.error(f"Dynamic test failed: {result.error}")
        raise typer.Exit(1)

    if output is not None and result.yaml:
        output.write_text(result.yaml + "\n", encoding="utf-8")
        _logger.info(f"Workflow written to: {output}")

    if commit and result.can_commit and result.workflow is not None:
        committed = commit_generated_workflow(
            ref.owner,
            ref.repo,
            result.workflow.workflow_name,
            result.workflow.yaml,
            result.workflow.default_branch,
            config.github.token,
            config,
        )
        if not committed.success:
            _logger.error(str(committed.error))
            raise typer.Exit(1)
        typer.echo(f"✅ {committed.message}: {committed.path}")


# =============================================================================
# commit command
# =============================================================================


@app.command("commit")
def commit_command(
    target: Annotated[str, typer.Argument(help="Repository as owner/repo")],
    workflow_file: Annotated[
        Path,
        typer.Option(
            "--workflow-file",
            "-f",
            help="Workflow YAML to commit",
            exists=True,
            dir_okay=False,
        ),
    ],
    name: Annotated[
        str | None,
        typer.Option("--name", "-n", help="Workflow file name (defaults to the file's name)"),
    ] = None,
    branch: Annotated[
        str | None,
        typer.Option("--branch", "-b", help="Target branch (defaults to the default branch)"),
    ] = None,
) -> None:
    """Commit a workflow file to .github/workflows/ of a repository."""
    from repograde.errors import UpstreamUnavailableError
    from repograde.runner import commit_generated_workflow, github_client

    config = _get_config()
    ref = _parse_target(target)

    if branch is None:
        try:
            with github_client(config.github.token, config) as github:
                branch = github.get_repository(ref.owner, ref.repo).default_branch
        except UpstreamUnavailableError as e:
            _logger.error(str(e))
            raise typer.Exit(1)

    result = commit_generated_workflow(
        ref.owner,
        ref.repo,
        name or workflow_file.name,
        workflow_file.read_text(encoding="utf-8"),
        branch,
        config.github.token,
        config,
    )
    if not result.success:
        _logger.error(str(result.error))
        raise typer.Exit(1)
    typer.echo(f"✅ {result.message}: {result.path}")


# =============================================================================
# watch command
# =============================================================================


@app.command()
def watch(
    target: Annotated[str, typer.Argument(help="Repository as owner/repo")],
    test_type: Annotated[
        str,
        typer.Option("--type", "-t", help="Test type the workflow was generated for"),
    ] = "eslint",
    workflow: Annotated[
        str | None,
        typer.Option("--workflow", "-w", help="Workflow file name (defaults to <type>-test.yml)"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output the result as JSON"),
    ] = False,
    save: Annotated[
        bool,
        typer.Option("--save", help="Save the result to the history store"),
    ] = False,
) -> None:
    """Run a committed workflow on GitHub Actions and summarize the run."""
    from repograde.runner import dynamic_record, run_actions_test

    config = _get_config()
    ref = _parse_target(target)

    result = run_actions_test(
        test_type, ref.owner, ref.repo, config.github.token, config, workflow=workflow
    )

    if save or config.runner.save_results:
        try:
            _store(config).save(dynamic_record(result))
        except OSError as e:
            _logger.error(f"Could not save result: {e}")

    if json_output or config.ci.json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    elif result.success:
        _print_dynamic(result)

    if not result.success:
        _logger.error(f"Actions run failed: {result.error}")
        raise typer.Exit(1)


# =============================================================================
# history command
# =============================================================================


@app.command()
def history(
    target: Annotated[
        str | None,
        typer.Argument(help="Only records of this owner/repo"),
    ] = None,
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", min=1, help="Most records shown"),
    ] = 20,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output records as JSON"),
    ] = False,
) -> None:
    """Show saved testing records, newest first."""
    config = _get_config()
    ref = _parse_target(target) if target else None
    records = _store(config).list_records(
        ref.owner if ref else None, ref.repo if ref else None
    )[:limit]

    if json_output:
        typer.echo(json.dumps([r.to_dict() for r in records], indent=2))
        return

    if not records:
        typer.echo("No saved records")
        return

    for record in records:
        typer.echo(
            f"{record.created_at[:19]}  {record.repository:<30} {record.test_type:<18} "
            f"{record.overall_score:>3} {record.grade.value:<2}  {record.status.value}  {record.id}"
        )


# =============================================================================
# stats command
# =============================================================================


@app.command()
def stats(
    target: Annotated[
        str | None,
        typer.Argument(help="Only records of this owner/repo"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output statistics as JSON"),
    ] = False,
) -> None:
    """Show averages and the grade distribution of saved records."""
    config = _get_config()
    ref = _parse_target(target) if target else None
    summary = _store(config).stats(ref.owner if ref else None, ref.repo if ref else None)

    if json_output:
        typer.echo(json.dumps(summary.to_dict(), indent=2))
        return

    if not summary.total_tests:
        typer.echo("No saved records")
        return

    typer.echo(f"\n📈 {summary.total_tests} tests, average score {summary.average_score}\n")
    for tool, average in summary.average_tool_scores.items():
        typer.echo(f"  {tool:<16} {average:>5}")
    grades = ", ".join(
        f"{letter} {count}" for letter, count in sorted(summary.grade_distribution.items())
    )
    typer.echo(f"\nGrades: {grades}")
    typer.echo("\nRecent:")
    for entry in summary.recent:
        typer.echo(
            f"  {entry['created_at'][:19]}  {entry['repository']:<30} "
            f"{entry['test_type']:<18} {entry['overall_score']:>3} {entry['grade']}"
        )
    typer.echo()


if __name__ == "__main__":
    app()
