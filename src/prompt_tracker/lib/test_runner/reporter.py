"""Report generation for test runs.

Builds a RunReport with summary statistics and renders it as Markdown.
JSON output uses pydantic's ``model_dump_json`` on the report directly.
"""

from collections.abc import Iterable
from datetime import datetime, timezone

from prompt_tracker import __version__
from prompt_tracker.models.test_result import (
    RunReport,
    RunSummary,
    TestRun,
    TestRunStatus,
)
from prompt_tracker.models.token_usage import TokenUsage

FEEDBACK_PREVIEW_LENGTH = 200


def summarize(runs: list[TestRun]) -> RunSummary:
    """Compute aggregate statistics over ``runs``.

    The pass rate counts passed runs over runs that were not skipped.
    """
    counts = {status: 0 for status in TestRunStatus}
    for run in runs:
        counts[run.status] += 1

    executed = len(runs) - counts[TestRunStatus.SKIPPED]
    passed = counts[TestRunStatus.PASSED]
    pass_rate = round(passed / executed * 100, 2) if executed else 0.0

    scores = [e.score for run in runs for e in run.evaluations]
    average_score = round(sum(scores) / len(scores), 2) if scores else None

    usages = [run.token_usage for run in runs if run.token_usage is not None]
    token_usage = None
    if usages:
        token_usage = TokenUsage.zero()
        for usage in usages:
            token_usage = token_usage + usage

    return RunSummary(
        total=len(runs),
        passed=passed,
        failed=counts[TestRunStatus.FAILED],
        errored=counts[TestRunStatus.ERROR],
        skipped=counts[TestRunStatus.SKIPPED],
        pass_rate=pass_rate,
        average_score=average_score,
        token_usage=token_usage,
    )


def build_report(runs: Iterable[TestRun], suite_name: str | None = None) -> RunReport:
    """Bundle runs and their summary into a RunReport."""
    run_list = list(runs)
    return RunReport(
        suite_name=suite_name,
        runs=run_list,
        summary=summarize(run_list),
        timestamp=datetime.now(timezone.utc).isoformat(),
        prompt_tracker_version=__version__,
    )


def _status_icon(run: TestRun) -> str:
    match run.status:
        case TestRunStatus.PASSED:
            return "✅"
        case TestRunStatus.FAILED:
            return "❌"
        case TestRunStatus.ERROR:
            return "⚠️"
        case _:
            return "⏭️"


def _escape_cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


def _generate_header(report: RunReport) -> str:
    title = report.suite_name or "Test Runs"
    lines = [
        f"# Test Report: {title}",
        "",
        f"**Generated:** {report.timestamp}",
    ]
    if report.prompt_tracker_version:
        lines.append(f"**PromptTracker Version:** {report.prompt_tracker_version}")
    return "\n".join(lines)


def _generate_summary(summary: RunSummary) -> str:
    lines = [
        "## Summary",
        "",
        "| Metric | Value |",
        "|--------|-------|",
        f"| Total Runs | {summary.total} |",
        f"| Passed | {summary.passed} |",
        f"| Failed | {summary.failed} |",
        f"| Errored | {summary.errored} |",
        f"| Skipped | {summary.skipped} |",
        f"| Pass Rate | {summary.pass_rate:.2f}% |",
    ]
    if summary.average_score is not None:
        lines.append(f"| Average Score | {summary.average_score:.2f} |")
    if summary.token_usage is not None:
        lines.append(f"| Total Tokens | {summary.token_usage.total_tokens} |")
    return "\n".join(lines)


def _generate_run_section(run: TestRun) -> str:
    title = run.test_name
    if run.dataset_row_id:
        title += f" (row {run.dataset_row_id})"
    lines = [
        f"### {_status_icon(run)} {title}",
        "",
        f"**Testable:** {run.testable_name}",
        f"**Status:** {run.status.value}",
    ]
    if run.execution_time_ms is not None:
        lines.append(f"**Execution Time:** {run.execution_time_ms}ms")
    if run.error_message:
        lines.extend(["", f"**Error:** {run.error_message}"])

    if run.evaluations:
        lines.extend(
            [
                "",
                "| Evaluator | Score | Passed | Feedback |",
                "|-----------|-------|--------|----------|",
            ]
        )
        for evaluation in run.evaluations:
            name = evaluation.evaluator_key or evaluation.evaluator_type
            passed = "✅" if evaluation.passed else "❌"
            feedback = _escape_cell(evaluation.feedback[:FEEDBACK_PREVIEW_LENGTH])
            lines.append(
                f"| {name} | {evaluation.score:.2f} | {passed} | {feedback} |"
            )
    return "\n".join(lines)


def generate_markdown_report(report: RunReport) -> str:
    """Render a RunReport as Markdown.

    Args:
        report: Report to render

    Returns:
        Markdown document with a summary table and one section per run
    """
    sections = [_generate_header(report), _generate_summary(report.summary)]
    if report.runs:
        sections.append("## Runs")
        sections.extend(_generate_run_section(run) for run in report.runs)
    return "\n\n".join(sections) + "\n"
