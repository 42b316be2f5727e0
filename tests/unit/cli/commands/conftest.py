"""Shared fixtures for CLI command tests."""

import json
import logging
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
import yaml
from click.testing import CliRunner


@pytest.fixture(autouse=True)
def restore_package_logger() -> Generator[None, None, None]:
    """Undo the handler and level the run command installs."""
    logger = logging.getLogger("prompt_tracker")
    handlers = list(logger.handlers)
    level = logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def write_suite(temp_dir: Path) -> Callable[..., tuple[str, str]]:
    """Factory writing a suite file and a responses file.

    Returns:
        Callable ``(tests, responses, testable=None)`` returning the suite
        and responses paths
    """

    def _write(
        tests: list[dict[str, Any]],
        responses: Any,
        testable: dict[str, Any] | None = None,
    ) -> tuple[str, str]:
        suite_path = temp_dir / "suite.yaml"
        suite_path.write_text(
            yaml.dump(
                {
                    "name": "support",
                    "testable": testable
                    or {"name": "support-prompt-v1", "provider": "openai"},
                    "tests": tests,
                }
            )
        )
        responses_path = temp_dir / "responses.json"
        responses_path.write_text(json.dumps(responses))
        return str(suite_path), str(responses_path)

    return _write
