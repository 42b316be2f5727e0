"""Storage for finished test runs.

The test runner writes every TestRun it finishes through a ``Repository``.
``InMemoryRepository`` keeps them in process, which is what the CLI and the
tests use.
"""

from typing import Protocol, runtime_checkable

from prompt_tracker.lib.logging_config import get_logger
from prompt_tracker.models.test_result import TestRun, TestRunStatus

logger = get_logger(__name__)


@runtime_checkable
class Repository(Protocol):
    """Protocol for test run storage backends.

    Methods:
        save: Insert or replace a run, keyed by its ``id``.
        get: Look a run up by ``id``.
        list: Return stored runs, optionally filtered.
    """

    def save(self, run: TestRun) -> None:
        """Store ``run``, replacing any earlier run with the same id."""
        ...

    def get(self, run_id: str) -> TestRun | None:
        """Return the run with ``run_id``, or None."""
        ...

    def list(
        self,
        test_name: str | None = None,
        status: TestRunStatus | None = None,
    ) -> list[TestRun]:
        """Return stored runs in insertion order.

        Args:
            test_name: Only runs of this test
            status: Only runs with this status
        """
        ...


class InMemoryRepository:
    """Dictionary-backed repository.

    Example:
        >>> repository = InMemoryRepository()
        >>> repository.save(run)
        >>> repository.get(run.id) is not None
        True
    """

    def __init__(self) -> None:
        self._runs: dict[str, TestRun] = {}

    def save(self, run: TestRun) -> None:
        self._runs[run.id] = run
        logger.debug(f"Saved test run {run.id} ({run.status.value})")

    def get(self, run_id: str) -> TestRun | None:
        return self._runs.get(run_id)

    def list(
        self,
        test_name: str | None = None,
        status: TestRunStatus | None = None,
    ) -> list[TestRun]:
        return [
            run
            for run in self._runs.values()
            if (test_name is None or run.test_name == test_name)
            and (status is None or run.status == status)
        ]

    def __len__(self) -> int:
        return len(self._runs)
