"""CLI interface for practising and grading coding challenges."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from catalog.catalog import ChallengeCatalog, ChallengeNotFound, load_catalog
from grading.errors import GradingError, UnsafeSubmission
from grading.schemas import Challenge, GradingReport
from practice.config import AppConfig, build_grader, build_recorder, load_config
from practice.logging_setup import configure_logging
from practice.session import EditorSession, SubmissionBlocked

app = typer.Typer(help="Coding challenge grader CLI")

_state: dict[str, AppConfig] = {"config": AppConfig()}

CONFIG_HELP = "Path to grader YAML config"


@app.callback()
def main(
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Load configuration and set up logging for every command."""
    config = AppConfig()
    if config_path:
        try:
            config = load_config(config_path)
        except FileNotFoundError as e:
            typer.secho(f"❌ Config file not found: {e}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1)
        except ValueError as e:
            typer.secho(f"❌ Invalid config: {e}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1)
    configure_logging("DEBUG" if verbose else config.log_level)
    _state["config"] = config


def _config() -> AppConfig:
    return _state["config"]


def _catalog() -> ChallengeCatalog:
    try:
        return load_catalog(_config().catalog_path)
    except (FileNotFoundError, ValueError) as e:
        typer.secho(f"❌ Could not load catalog: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)


def _challenge(slug: str) -> Challenge:
    try:
        return _catalog().get_challenge(slug)
    except ChallengeNotFound as e:
        typer.secho(f"❌ {e.message}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)


def _read_source(source_file: str) -> str:
    path = Path(source_file)
    if not path.exists():
        typer.secho(f"❌ Source file not found: {source_file}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    return path.read_text(encoding="utf-8")


def _print_report(challenge: Challenge, report: GradingReport) -> None:
    for test_case, result in zip(challenge.test_cases, report.results):
        marker = "✅" if result.passed else "❌"
        typer.echo(f"  {marker} {result.test_name} [{result.status_description}] {result.time}s")
        if result.passed:
            continue
        if test_case.is_hidden:
            typer.echo("     (hidden test case)")
        else:
            typer.echo(f"     Input:    {result.input!r}")
            typer.echo(f"     Expected: {result.expected_output!r}")
            typer.echo(f"     Actual:   {result.actual_output!r}")
        if result.error:
            typer.secho(f"     Error:    {result.error}", fg=typer.colors.RED)

    color = typer.colors.GREEN if report.all_passed else typer.colors.YELLOW
    typer.secho(
        f"\n📊 {report.passed_tests}/{report.total_tests} tests passed in {report.execution_time}ms",
        fg=color,
    )


@app.command("list")
def list_challenges(
    language: Optional[str] = typer.Option(None, help="Only show challenges in this language"),
    difficulty: Optional[str] = typer.Option(None, help="Easy, Medium or Hard"),
) -> None:
    """List challenges in the catalog."""
    challenges = _catalog().filter(language=language, difficulty=difficulty)
    if not challenges:
        typer.secho("No challenges found.", fg=typer.colors.YELLOW)
        return

    typer.secho(f"\n📁 Found {len(challenges)} challenge(s):\n", fg=typer.colors.BLUE)
    for challenge in challenges:
        typer.echo(f"  {challenge.slug:<24} {challenge.language:<11} {challenge.difficulty:<7} {challenge.title}")


@app.command()
def show(
    slug: str = typer.Argument(..., help="Challenge slug"),
) -> None:
    """Show a challenge description, its visible tests and starter code."""
    challenge = _challenge(slug)
    typer.echo(challenge.description)
    visible = [test_case for test_case in challenge.test_cases if not test_case.is_hidden]
    typer.secho(f"Tests: {len(visible)} visible, {len(challenge.test_cases) - len(visible)} hidden", fg=typer.colors.BLUE)
    for test_case in visible:
        typer.echo(f"  - {test_case.description or 'Test'}: {test_case.input!r} -> {test_case.expected_output!r}")
    typer.echo("\n" + "=" * 80)
    typer.echo(challenge.starter_code)
    typer.echo("=" * 80)


@app.command()
def run(
    slug: str = typer.Argument(..., help="Challenge slug"),
    source_file: str = typer.Argument(..., help="File holding the solution"),
) -> None:
    """Run a solution against every test case of a challenge."""
    challenge = _challenge(slug)
    session = EditorSession(challenge, build_grader(_config()))
    try:
        report = session.run(_read_source(source_file))
    except UnsafeSubmission as e:
        typer.secho(f"❌ {e.message}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    except GradingError as e:
        typer.secho(f"❌ Grading failed: {e.message}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    _print_report(challenge, report)
    if not report.all_passed:
        raise typer.Exit(1)


@app.command()
def submit(
    slug: str = typer.Argument(..., help="Challenge slug"),
    source_file: str = typer.Argument(..., help="File holding the solution"),
) -> None:
    """Grade a solution and record it when every test passes."""
    config = _config()
    challenge = _challenge(slug)
    session = EditorSession(challenge, build_grader(config), build_recorder(config))
    try:
        receipt = session.submit(_read_source(source_file))
    except UnsafeSubmission as e:
        typer.secho(f"❌ {e.message}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    except SubmissionBlocked as e:
        if session.last_report is not None:
            _print_report(challenge, session.last_report)
        typer.secho(f"⚠️  {e.message}", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(1)
    except GradingError as e:
        typer.secho(f"❌ Submission failed: {e.message}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    if session.last_report is not None:
        _print_report(challenge, session.last_report)
    if not receipt.success:
        typer.secho(f"❌ Submission was not recorded: {receipt.message or 'unknown reason'}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    if receipt.badge_awarded:
        typer.secho("🎉 Challenge Completed! Badge Earned!", fg=typer.colors.GREEN)
    else:
        typer.secho("✅ Challenge Completed!", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app()
