"""Unit tests for TestRunner.

Runs use recorded provider payloads; judge evaluators get a mock judge.
"""

import logging
from typing import Any
from unittest.mock import MagicMock

import pytest

from prompt_tracker.lib.test_runner.persistence import InMemoryRepository
from prompt_tracker.lib.test_runner.runner import TestRunner
from prompt_tracker.models.evaluator_config import EvaluationMode, EvaluatorConfig
from prompt_tracker.models.normalized import (
    NormalizedConversation,
    NormalizedSingleResponse,
)
from prompt_tracker.models.test_case import DatasetRow, Test, Testable, TestMode
from prompt_tracker.models.test_result import TestRunStatus


@pytest.fixture
def tool_conversation() -> dict[str, Any]:
    """Chat completion conversation with one tool round trip."""
    return {
        "messages": [
            {"role": "user", "content": "Where is order 42?"},
            {
                "role": "assistant",
                "content": None,
                "tool_calls": [
                    {
                        "id": "call_1",
                        "type": "function",
                        "function": {
                            "name": "lookup_order",
                            "arguments": '{"order_id": "42"}',
                        },
                    }
                ],
            },
            {"role": "tool", "tool_call_id": "call_1", "content": "shipped"},
            {"role": "assistant", "content": "Order 42 has shipped."},
        ]
    }


@pytest.mark.unit
class TestSingleTurnRuns:
    """Tests for single-turn test runs."""

    def test_all_evaluators_pass(
        self,
        make_test: Any,
        chat_testable: Testable,
        chat_completion_response: dict[str, Any],
    ) -> None:
        test = make_test(
            [
                ("keyword", 80, {"required_keywords": ["help"]}),
                ("length", 80, {"min_length": 10, "max_length": 200}),
            ]
        )
        run = TestRunner().run(test, chat_testable, chat_completion_response)

        assert run.status == TestRunStatus.PASSED
        assert run.passed is True
        assert run.total_evaluators == 2
        assert run.passed_evaluators == 2
        assert run.failed_evaluators == 0
        assert [e.evaluator_key for e in run.evaluations] == ["keyword", "length"]
        assert isinstance(run.output_data, NormalizedSingleResponse)
        assert run.output_data.text == "Hello! How can I help you today?"
        assert run.token_usage is not None
        assert run.token_usage.total_tokens == 21
        assert run.execution_time_ms is not None
        assert run.started_at is not None
        assert run.completed_at is not None
        assert run.is_completed

    def test_failing_evaluator_fails_run(
        self,
        make_test: Any,
        chat_testable: Testable,
        chat_completion_response: dict[str, Any],
    ) -> None:
        test = make_test(
            [
                ("keyword", 80, {"required_keywords": ["help"]}),
                ("exact_match", 100, {"expected_text": "Goodbye"}),
            ]
        )
        run = TestRunner().run(test, chat_testable, chat_completion_response)

        assert run.status == TestRunStatus.FAILED
        assert run.passed is False
        assert run.passed_evaluators == 1
        assert run.failed_evaluators == 1
        assert run.failed_evaluations()[0].evaluator_key == "exact_match"

    def test_plain_text_response_has_no_token_usage(
        self, make_test: Any, chat_testable: Testable
    ) -> None:
        test = make_test([("length", 80, {"max_length": 50})])
        run = TestRunner().run(test, chat_testable, "Short answer.")

        assert run.status == TestRunStatus.PASSED
        assert run.token_usage is None

    def test_no_evaluators_passes(
        self,
        make_test: Any,
        chat_testable: Testable,
        chat_completion_response: dict[str, Any],
    ) -> None:
        run = TestRunner().run(make_test([]), chat_testable, chat_completion_response)
        assert run.status == TestRunStatus.PASSED
        assert run.total_evaluators == 0

    def test_disabled_evaluator_config_not_run(
        self,
        chat_testable: Testable,
        chat_completion_response: dict[str, Any],
    ) -> None:
        test = Test(
            name="greeting",
            evaluator_configs=[
                EvaluatorConfig(evaluator_key="length", threshold=80),
                EvaluatorConfig(
                    evaluator_key="exact_match",
                    threshold=100,
                    config={"expected_text": "Goodbye"},
                    enabled=False,
                ),
            ],
        )
        run = TestRunner().run(test, chat_testable, chat_completion_response)
        assert run.status == TestRunStatus.PASSED
        assert run.total_evaluators == 1

    def test_binary_mode_records_pass_fail_score(
        self,
        chat_testable: Testable,
        chat_completion_response: dict[str, Any],
    ) -> None:
        test = Test(
            name="greeting",
            evaluator_configs=[
                EvaluatorConfig(
                    evaluator_key="keyword",
                    evaluation_mode=EvaluationMode.BINARY,
                    threshold=50,
                    config={"required_keywords": ["help", "refund"]},
                ),
            ],
        )
        run = TestRunner().run(test, chat_testable, chat_completion_response)

        evaluation = run.evaluations[0]
        assert evaluation.evaluation_mode == EvaluationMode.BINARY
        assert evaluation.score == 100.0
        assert evaluation.passed is True
        assert run.status == TestRunStatus.PASSED

    def test_llm_judge_uses_injected_judge(
        self,
        make_test: Any,
        chat_testable: Testable,
        chat_completion_response: dict[str, Any],
        mock_judge: MagicMock,
    ) -> None:
        test = make_test([("llm_judge", 70, {"judge_model": "gpt-4o-mini"})])
        run = TestRunner(judge=mock_judge).run(
            test, chat_testable, chat_completion_response
        )

        assert run.status == TestRunStatus.PASSED
        assert run.evaluations[0].score == 85.0
        assert mock_judge.call_args.args[1] == "gpt-4o-mini"


@pytest.mark.unit
class TestConversationalRuns:
    """Tests for conversational test runs."""

    def test_function_call_evaluated_on_conversation(
        self,
        make_test: Any,
        chat_testable: Testable,
        tool_conversation: dict[str, Any],
    ) -> None:
        test = make_test(
            [("function_call", 100, {"expected_functions": ["lookup_order"]})],
            test_mode=TestMode.CONVERSATIONAL,
        )
        run = TestRunner().run(test, chat_testable, tool_conversation)

        assert run.status == TestRunStatus.PASSED
        assert isinstance(run.output_data, NormalizedConversation)
        assert run.output_data.tool_usage[0].result == "shipped"

    def test_conversation_judge_scores_each_reply(
        self,
        make_test: Any,
        chat_testable: Testable,
        tool_conversation: dict[str, Any],
    ) -> None:
        judge = MagicMock(side_effect=["Score: 60", "Score: 90"])
        test = make_test(
            [("conversation_judge", 70, {})], test_mode=TestMode.CONVERSATIONAL
        )
        run = TestRunner(judge=judge).run(test, chat_testable, tool_conversation)

        assert judge.call_count == 2
        assert run.evaluations[0].score == 75.0
        assert run.status == TestRunStatus.PASSED


@pytest.mark.unit
class TestSkippingAndErrors:
    """Tests for skipped evaluators, skipped tests and errored runs."""

    def test_disabled_test_is_skipped(
        self,
        chat_testable: Testable,
        chat_completion_response: dict[str, Any],
    ) -> None:
        test = Test(name="greeting", enabled=False)
        run = TestRunner().run(test, chat_testable, chat_completion_response)

        assert run.status == TestRunStatus.SKIPPED
        assert run.passed is None
        assert run.started_at is None
        assert run.completed_at is not None
        assert run.evaluations == []

    def test_wrong_category_evaluator_skipped(
        self,
        make_test: Any,
        chat_testable: Testable,
        chat_completion_response: dict[str, Any],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        test = make_test(
            [
                ("length", 80, {}),
                ("function_call", 100, {"expected_functions": ["lookup_order"]}),
            ]
        )
        with caplog.at_level(logging.WARNING, logger="prompt_tracker"):
            run = TestRunner().run(test, chat_testable, chat_completion_response)

        assert run.status == TestRunStatus.PASSED
        assert run.total_evaluators == 1
        assert "Skipping evaluator 'function_call'" in caplog.text
        assert "not usable in single_turn tests" in caplog.text

    def test_incompatible_api_evaluator_skipped(
        self,
        make_test: Any,
        chat_testable: Testable,
        tool_conversation: dict[str, Any],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        test = make_test(
            [("file_search", 100, {"expected_files": ["handbook.pdf"]})],
            test_mode=TestMode.CONVERSATIONAL,
        )
        with caplog.at_level(logging.WARNING, logger="prompt_tracker"):
            run = TestRunner().run(test, chat_testable, tool_conversation)

        assert run.total_evaluators == 0
        assert run.status == TestRunStatus.PASSED
        assert "not compatible with openai_chat_completion" in caplog.text

    def test_unknown_evaluator_errors_run(
        self,
        make_test: Any,
        chat_testable: Testable,
        chat_completion_response: dict[str, Any],
    ) -> None:
        test = make_test([("length", 80, {}), ("sentiment", 80, {})])
        run = TestRunner().run(test, chat_testable, chat_completion_response)

        assert run.status == TestRunStatus.ERROR
        assert run.passed is False
        assert run.error_message == "Unknown evaluator: sentiment"
        assert run.completed_at is not None
        assert run.evaluations == []
        assert run.total_evaluators == 0

    def test_errored_run_discards_earlier_evaluations(
        self, make_test: Any, chat_testable: Testable, mock_judge: MagicMock
    ) -> None:
        test = make_test(
            [
                ("function_call", 100, {"expected_functions": ["lookup_order"]}),
                ("conversation_judge", 70, {}),
            ],
            test_mode=TestMode.CONVERSATIONAL,
        )
        conversation = {"messages": [{"role": "user", "content": "Hi"}]}
        run = TestRunner(judge=mock_judge).run(test, chat_testable, conversation)

        assert run.status == TestRunStatus.ERROR
        assert "No assistant messages" in (run.error_message or "")
        assert run.evaluations == []
        assert run.total_evaluators == 0
        assert run.passed_evaluators == 0
        assert run.failed_evaluators == 0

    def test_judge_evaluator_without_judge_errors_run(
        self,
        make_test: Any,
        chat_testable: Testable,
        chat_completion_response: dict[str, Any],
    ) -> None:
        test = make_test([("llm_judge", 70, {})])
        run = TestRunner().run(test, chat_testable, chat_completion_response)

        assert run.status == TestRunStatus.ERROR
        assert run.error_message

    def test_judge_failure_errors_run(
        self,
        make_test: Any,
        chat_testable: Testable,
        chat_completion_response: dict[str, Any],
    ) -> None:
        judge = MagicMock(side_effect=ConnectionError("judge unavailable"))
        test = make_test([("llm_judge", 70, {})])
        run = TestRunner(judge=judge).run(
            test, chat_testable, chat_completion_response
        )

        assert run.status == TestRunStatus.ERROR
        assert "judge unavailable" in run.error_message

    def test_invalid_evaluator_settings_error_run(
        self,
        make_test: Any,
        chat_testable: Testable,
        chat_completion_response: dict[str, Any],
    ) -> None:
        test = make_test([("length", 80, {"min_length": 50, "max_length": 10})])
        run = TestRunner().run(test, chat_testable, chat_completion_response)
        assert run.status == TestRunStatus.ERROR


@pytest.mark.unit
class TestBatchAndPersistence:
    """Tests for batches and repository writes."""

    def test_runs_saved_to_repository(
        self,
        make_test: Any,
        chat_testable: Testable,
        chat_completion_response: dict[str, Any],
    ) -> None:
        repository = InMemoryRepository()
        runner = TestRunner(repository=repository)
        run = runner.run(make_test([("length", 80, {})]), chat_testable, "Hi")
        skipped = runner.run(
            Test(name="off", enabled=False), chat_testable, chat_completion_response
        )

        assert len(repository) == 2
        assert repository.get(run.id) is run
        assert repository.get(skipped.id).status == TestRunStatus.SKIPPED

    def test_run_batch_with_dataset_rows(
        self, make_test: Any, chat_testable: Testable
    ) -> None:
        test = make_test([("keyword", 80, {"required_keywords": ["paris"]})])
        rows = [
            ("The capital is Paris.", DatasetRow(id="row-1", row_data={"q": "fr"})),
            ("The capital is Rome.", DatasetRow(id="row-2", row_data={"q": "it"})),
            "Paris, of course.",
        ]
        runs = TestRunner().run_batch(test, chat_testable, rows)

        assert [run.dataset_row_id for run in runs] == ["row-1", "row-2", None]
        assert [run.status for run in runs] == [
            TestRunStatus.PASSED,
            TestRunStatus.FAILED,
            TestRunStatus.PASSED,
        ]

    def test_errored_run_does_not_stop_batch(
        self, make_test: Any, chat_testable: Testable
    ) -> None:
        test = make_test([("llm_judge", 70, {})])
        judge = MagicMock(side_effect=[RuntimeError("boom"), "Score: 90"])
        runs = TestRunner(judge=judge).run_batch(
            test, chat_testable, ["first", "second"]
        )

        assert [run.status for run in runs] == [
            TestRunStatus.ERROR,
            TestRunStatus.PASSED,
        ]
