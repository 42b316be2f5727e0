"""CLI command listing registered evaluators."""

import click

from prompt_tracker.lib.evaluators.registry import EvaluatorRegistry, EvaluatorSpec
from prompt_tracker.models.api_type import ApiType
from prompt_tracker.models.test_case import TestMode


def _format_spec(spec: EvaluatorSpec) -> str:
    judge = " [judge]" if spec.requires_judge else ""
    return (
        f"{spec.key:<20} {spec.category.value:<16} "
        f"threshold={spec.default_config.get('threshold_score')}{judge}\n"
        f"    {spec.description}"
    )


@click.command()
@click.option(
    "--mode",
    type=click.Choice([mode.value for mode in TestMode]),
    default=None,
    help="Only evaluators usable in this test mode",
)
@click.option(
    "--api",
    type=click.Choice([api.value for api in ApiType]),
    default=None,
    help="Only evaluators compatible with this API type",
)
def evaluators(mode: str | None, api: str | None) -> None:
    """List registered evaluators.

    \b
    EXAMPLES:

        All evaluators:
            prompt-tracker evaluators

        Conversational evaluators for the Assistants API:
            prompt-tracker evaluators --mode conversational \\
                --api openai_assistants_api
    """
    specs = EvaluatorRegistry.for_mode(mode) if mode else EvaluatorRegistry.all()
    if api:
        specs = [spec for spec in specs if spec.compatible_with_api(api)]

    if not specs:
        click.echo("No matching evaluators.")
        return
    for spec in specs:
        click.echo(_format_spec(spec))
