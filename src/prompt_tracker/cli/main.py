"""Entry point for the ``prompt-tracker`` command."""

import click

from prompt_tracker import __version__
from prompt_tracker.cli.commands.evaluators import evaluators
from prompt_tracker.cli.commands.run import run
from prompt_tracker.config.env_loader import load_env_file


@click.group()
@click.version_option(version=__version__, prog_name="prompt-tracker")
def main() -> None:
    """PromptTracker - evaluate recorded LLM responses.

    \b
    EXAMPLES:

        Run a suite against recorded responses:
            prompt-tracker run suite.yaml responses.json

        List evaluators usable with the Responses API:
            prompt-tracker evaluators --api openai_response_api
    """
    load_env_file()


main.add_command(run)
main.add_command(evaluators)


if __name__ == "__main__":
    main()
