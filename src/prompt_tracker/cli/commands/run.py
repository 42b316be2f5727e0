"""CLI command for running a test suite against recorded responses.

Implements the 'prompt-tracker run' command: loads a suite YAML and a JSON
file of raw provider responses keyed by test name, runs every test and
reports the results.
"""

import sys
import time
from pathlib import Path

import click

from prompt_tracker.config.loader import ConfigLoader, resolve_runtime_settings
from prompt_tracker.lib.errors import (
    ConfigError,
    EvaluatorConfigurationError,
    FileNotFoundError,
)
from prompt_tracker.lib.logging_config import get_logger, setup_logging
from prompt_tracker.lib.test_runner.persistence import InMemoryRepository
from prompt_tracker.lib.test_runner.reporter import (
    build_report,
    generate_markdown_report,
)
from prompt_tracker.lib.test_runner.runner import TestRunner
from prompt_tracker.models.test_result import RunReport, TestRun, TestRunStatus

logger = get_logger(__name__)


def _run_line(run: TestRun) -> str:
    label = run.test_name
    if run.dataset_row_id:
        label += f" [{run.dataset_row_id}]"
    match run.status:
        case TestRunStatus.PASSED:
            return f"✓ {label} ({run.passed_evaluators}/{run.total_evaluators})"
        case TestRunStatus.FAILED:
            return f"✗ {label} ({run.passed_evaluators}/{run.total_evaluators})"
        case TestRunStatus.ERROR:
            return f"⚠ {label}: {run.error_message}"
        case _:
            return f"- {label} ({run.status.value})"


@click.command()
@click.argument("suite", type=click.Path(exists=True, dir_okay=False))
@click.argument("responses", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output",
    type=click.Path(),
    default=None,
    help="Path to save the report file (JSON or Markdown)",
)
@click.option(
    "--format",
    type=click.Choice(["json", "markdown"]),
    default=None,
    help="Report format (auto-detect from extension if not specified)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output with debug information",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress per-run output (summary still shown)",
)
def run(
    suite: str,
    responses: str,
    output: str | None,
    format: str | None,
    verbose: bool,
    quiet: bool,
) -> None:
    """Run a test suite against recorded responses.

    SUITE is the path to the suite YAML file. RESPONSES is a JSON object
    mapping test names to a raw response, or to a list of raw responses to
    run as a batch.

    Exits with 0 when every run passed, 1 when any run failed or errored and
    2 on configuration errors.
    """
    settings = resolve_runtime_settings(verbose=verbose, quiet=quiet)
    setup_logging(verbose=settings.verbose, quiet=settings.quiet)

    logger.info(f"Run command invoked: suite={suite}, responses={responses}")
    start_time = time.time()

    try:
        loader = ConfigLoader()
        test_suite = loader.load_suite(suite, judge_model=settings.judge_model)
        recorded = loader.load_responses(responses)
    except (ConfigError, EvaluatorConfigurationError, FileNotFoundError) as e:
        logger.error(f"Configuration error: {e}", exc_info=True)
        click.echo(f"Configuration Error: {e}", err=True)
        sys.exit(2)

    runner = TestRunner(repository=InMemoryRepository())
    runs: list[TestRun] = []
    for test in test_suite.tests:
        if test.name not in recorded:
            logger.warning(f"No recorded response for test '{test.name}'")
            continue
        items = recorded[test.name]
        if isinstance(items, list):
            test_runs = runner.run_batch(test, test_suite.testable, items)
        else:
            test_runs = [runner.run(test, test_suite.testable, items)]
        runs.extend(test_runs)
        if not settings.quiet:
            for test_run in test_runs:
                click.echo(_run_line(test_run))

    report = build_report(runs, suite_name=test_suite.name)
    summary = report.summary
    click.echo(
        f"\n{summary.passed}/{summary.total} passed, {summary.failed} failed, "
        f"{summary.errored} errored ({summary.pass_rate:.2f}%)"
    )
    logger.info(f"Suite completed in {time.time() - start_time:.2f}s")

    if output:
        _save_report(report, output, format)

    if summary.failed > 0 or summary.errored > 0:
        sys.exit(1)
    sys.exit(0)


def _save_report(report: RunReport, output: str, format: str | None) -> None:
    """Save the report to a file in the requested format.

    Args:
        report: RunReport to save
        output: Output file path
        format: json or markdown. If None, auto-detect from the extension.
    """
    if format is None:
        if output.endswith((".md", ".markdown")):
            format = "markdown"
        else:
            format = "json"
        logger.debug(f"Auto-detected report format: {format}")

    if format == "json":
        content = report.model_dump_json(indent=2)
    else:
        content = generate_markdown_report(report)

    try:
        Path(output).write_text(content, encoding="utf-8")
    except OSError as e:
        logger.error(f"Failed to write report to {output}: {e}")
        raise
    click.echo(f"Report saved to {output}")
