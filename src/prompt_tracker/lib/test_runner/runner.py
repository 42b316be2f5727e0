"""Test runner.

Runs a test against a recorded raw response:

1. Classify the testable's API and normalize the response for the test mode
2. Build each enabled, compatible evaluator and evaluate
3. Aggregate the evaluations into the TestRun verdict

A failure anywhere in this pipeline finishes the run with status ``error``
instead of propagating, so one broken run never aborts a batch.
"""

import time
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from prompt_tracker.lib.api_types import classify
from prompt_tracker.lib.errors import UnknownEvaluatorError
from prompt_tracker.lib.evaluators.base import EvaluatorCategory
from prompt_tracker.lib.evaluators.judge import JudgeClient
from prompt_tracker.lib.evaluators.registry import EvaluatorRegistry
from prompt_tracker.lib.logging_config import get_logger
from prompt_tracker.lib.test_runner.persistence import Repository
from prompt_tracker.models.api_type import ApiType
from prompt_tracker.models.evaluator_config import EvaluatorConfig
from prompt_tracker.models.normalized import (
    NormalizedConversation,
    NormalizedSingleResponse,
)
from prompt_tracker.models.test_case import DatasetRow, Test, Testable, TestMode
from prompt_tracker.models.test_result import Evaluation, TestRun, TestRunStatus
from prompt_tracker.models.token_usage import TokenUsage

logger = get_logger(__name__)

BatchItem = tuple[Any, DatasetRow | None]

_MODE_CATEGORIES = {
    TestMode.SINGLE_TURN: EvaluatorCategory.SINGLE_RESPONSE,
    TestMode.CONVERSATIONAL: EvaluatorCategory.CONVERSATIONAL,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TestRunner:
    """Execute tests against raw responses and aggregate evaluations.

    Attributes:
        repository: Where finished runs are saved (optional)
        judge: LLM judge handed to evaluators that need one
        registry: Evaluator registry used to build evaluators
    """

    __test__ = False

    def __init__(
        self,
        repository: Repository | None = None,
        judge: JudgeClient | None = None,
        registry: type[EvaluatorRegistry] = EvaluatorRegistry,
    ) -> None:
        """Initialize the runner.

        Args:
            repository: Storage for finished runs
            judge: Callable ``(prompt, model) -> str`` for judge evaluators
            registry: Evaluator registry (class) to resolve evaluator keys
        """
        self.repository = repository
        self.judge = judge
        self.registry = registry

    def run(
        self,
        test: Test,
        testable: Testable,
        raw_response: Any,
        dataset_row: DatasetRow | None = None,
    ) -> TestRun:
        """Run one test against one raw response.

        Args:
            test: Test definition with its evaluator configs
            testable: Prompt version or assistant that produced the response
            raw_response: Provider response (dict, text or normalized model)
            dataset_row: Dataset row this run belongs to

        Returns:
            Finished TestRun; never raises for evaluation failures
        """
        run = TestRun(
            test_name=test.name,
            testable_name=testable.name,
            dataset_row_id=dataset_row.id if dataset_row else None,
        )

        if not test.enabled:
            logger.info(f"Skipping disabled test '{test.name}'")
            run.status = TestRunStatus.SKIPPED
            return self._finish(run)

        run.status = TestRunStatus.RUNNING
        run.started_at = _utcnow()
        start = time.perf_counter()
        logger.debug(f"Running test '{test.name}' against '{testable.name}'")

        try:
            api_type = classify(testable)
            run.output_data = self._normalize(test, api_type, raw_response)
            run.token_usage = self._token_usage(run.output_data)

            # Partial evaluations of an errored run are discarded
            evaluations: list[Evaluation] = []
            for evaluator_config in test.enabled_evaluator_configs():
                self._evaluate(run, test, api_type, evaluator_config, evaluations)

            run.evaluations = evaluations
            run.total_evaluators = len(evaluations)
            run.passed_evaluators = sum(1 for e in evaluations if e.passed)
            run.failed_evaluators = run.total_evaluators - run.passed_evaluators
            run.passed = run.failed_evaluators == 0
            run.status = TestRunStatus.PASSED if run.passed else TestRunStatus.FAILED
            logger.info(
                f"Test '{test.name}' {run.status.value}: "
                f"{run.passed_evaluators}/{run.total_evaluators} evaluators passed"
            )
        except Exception as e:
            logger.error(f"Test '{test.name}' errored: {e}", exc_info=True)
            run.status = TestRunStatus.ERROR
            run.passed = False
            run.error_message = str(e)
        finally:
            run.execution_time_ms = int((time.perf_counter() - start) * 1000)

        return self._finish(run)

    def run_batch(
        self,
        test: Test,
        testable: Testable,
        items: Iterable[BatchItem | Any],
    ) -> list[TestRun]:
        """Run a test once per item.

        Args:
            test: Test definition
            testable: Testable under test
            items: Raw responses, or ``(raw_response, dataset_row)`` pairs

        Returns:
            One TestRun per item, in order. An errored run does not stop the
            remaining items.
        """
        runs = []
        for item in items:
            if isinstance(item, tuple) and len(item) == 2:
                raw_response, dataset_row = item
            else:
                raw_response, dataset_row = item, None
            runs.append(self.run(test, testable, raw_response, dataset_row))
        return runs

    def _normalize(
        self, test: Test, api_type: ApiType, raw_response: Any
    ) -> NormalizedConversation | NormalizedSingleResponse:
        normalizer = self.registry.normalizer_for(api_type)
        if test.test_mode == TestMode.CONVERSATIONAL:
            return normalizer.normalize_conversation(raw_response)
        return normalizer.normalize_single(raw_response)

    def _evaluate(
        self,
        run: TestRun,
        test: Test,
        api_type: ApiType,
        evaluator_config: EvaluatorConfig,
        evaluations: list[Evaluation],
    ) -> Evaluation | None:
        key = evaluator_config.evaluator_key
        spec = self.registry.get(key)
        if spec is None:
            raise UnknownEvaluatorError(key)

        if spec.category != _MODE_CATEGORIES[test.test_mode]:
            logger.warning(
                f"Skipping evaluator '{key}' for test '{test.name}': "
                f"not usable in {test.test_mode.value} tests"
            )
            return None
        if not spec.compatible_with_api(api_type):
            logger.warning(
                f"Skipping evaluator '{key}' for test '{test.name}': "
                f"not compatible with {api_type.value}"
            )
            return None

        context: dict[str, Any] = {
            "evaluation_mode": evaluator_config.evaluation_mode,
            "on_evaluation": evaluations.append,
        }
        if spec.requires_judge:
            context["judge"] = self.judge

        evaluator = self.registry.build(
            key, run.output_data, evaluator_config.effective_config(), **context
        )
        return evaluator.evaluate()

    def _token_usage(
        self, output: NormalizedConversation | NormalizedSingleResponse
    ) -> TokenUsage | None:
        usage = output.metadata.get("usage")
        if usage is None:
            return None
        return TokenUsage.from_usage(usage)

    def _finish(self, run: TestRun) -> TestRun:
        run.completed_at = _utcnow()
        if self.repository is not None:
            self.repository.save(run)
        return run
