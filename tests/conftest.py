"""Pytest configuration and shared fixtures for PromptTracker tests."""

import os
import shutil
import tempfile
from collections.abc import Generator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from prompt_tracker.lib.evaluators.registry import EvaluatorRegistry
from prompt_tracker.models.evaluator_config import EvaluatorConfig
from prompt_tracker.models.test_case import Test, Testable, TestMode


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test file operations.

    Yields:
        Path to temporary directory

    Cleanup:
        Automatically removes directory after test
    """
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def isolated_env() -> Generator[dict[str, str], None, None]:
    """Provide isolated environment variables for testing.

    Saves current environment and restores after test.

    Yields:
        Dictionary of original environment variables
    """
    original_env = os.environ.copy()
    yield original_env
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture(autouse=True)
def reset_registry() -> Generator[None, None, None]:
    """Restore the built-in evaluator table around every test."""
    EvaluatorRegistry.reset()
    yield
    EvaluatorRegistry.reset()


@pytest.fixture
def mock_judge() -> MagicMock:
    """LLM judge double replying with a fixed score.

    Returns:
        MagicMock callable returning ``Score: 85``
    """
    return MagicMock(return_value="Score: 85\nFeedback: Clear and helpful.")


@pytest.fixture
def chat_testable() -> Testable:
    """Prompt version served through OpenAI chat completions."""
    return Testable(name="support-prompt-v1", provider="openai", model="gpt-4o")


@pytest.fixture
def assistant_testable() -> Testable:
    """OpenAI Assistant testable."""
    return Testable(name="research-assistant", kind="assistant", provider="openai")


@pytest.fixture
def make_test() -> Any:
    """Factory for Test definitions.

    Returns:
        Callable ``(evaluators, test_mode=..., name=...)`` where evaluators is
        a list of ``(key, threshold, config)`` tuples
    """

    def _make(
        evaluators: list[tuple[str, int | None, dict[str, Any]]],
        test_mode: TestMode = TestMode.SINGLE_TURN,
        name: str = "greeting",
    ) -> Test:
        return Test(
            name=name,
            test_mode=test_mode,
            evaluator_configs=[
                EvaluatorConfig(evaluator_key=key, threshold=threshold, config=config)
                for key, threshold, config in evaluators
            ],
        )

    return _make


@pytest.fixture
def chat_completion_response() -> dict[str, Any]:
    """Raw chat completion payload with usage."""
    return {
        "id": "chatcmpl-123",
        "model": "gpt-4o",
        "choices": [
            {
                "index": 0,
                "message": {
                    "role": "assistant",
                    "content": "Hello! How can I help you today?",
                },
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 12, "completion_tokens": 9, "total_tokens": 21},
    }


def pytest_configure(config: Any) -> None:
    """Configure pytest with marker options."""
    config.addinivalue_line(
        "markers",
        "unit: marks tests as unit tests",
    )
