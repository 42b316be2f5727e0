"""Unit tests for the rule-based single-response evaluators."""

from typing import Any

import pytest

from prompt_tracker.lib.errors import EvaluatorConfigurationError
from prompt_tracker.lib.evaluators.exact_match import ExactMatchEvaluator
from prompt_tracker.lib.evaluators.keyword import KeywordEvaluator
from prompt_tracker.lib.evaluators.length import LengthEvaluator
from prompt_tracker.lib.evaluators.pattern_match import (
    PatternMatchEvaluator,
    pattern_found,
)


@pytest.mark.unit
class TestLengthEvaluator:
    """Tests for LengthEvaluator."""

    @pytest.mark.parametrize(
        "text,score,feedback",
        [
            ("abc", 0.0, "Response too short: 3 characters (minimum 5)"),
            ("abcdefghijkl", 0.0, "Response too long: 12 characters (maximum 10)"),
            ("abcdefg", 100.0, "Response length 7 is within 5-10"),
            ("abcde", 100.0, "Response length 5 is within 5-10"),
        ],
        ids=["too_short", "too_long", "within", "inclusive_bound"],
    )
    def test_scoring(self, text: str, score: float, feedback: str) -> None:
        evaluator = LengthEvaluator(text, {"min_length": 5, "max_length": 10})
        assert evaluator.score == score
        assert evaluator.generate_feedback() == feedback

    def test_min_greater_than_max_rejected(self) -> None:
        with pytest.raises(EvaluatorConfigurationError):
            LengthEvaluator("abc", {"min_length": 20, "max_length": 10})

    def test_metadata_has_length(self) -> None:
        evaluation = LengthEvaluator("hello").evaluate()
        assert evaluation.metadata["length"] == 5
        assert evaluation.passed is True


@pytest.mark.unit
class TestKeywordEvaluator:
    """Tests for KeywordEvaluator."""

    def test_all_required_found(self) -> None:
        evaluator = KeywordEvaluator(
            "Your REFUND will be processed today.",
            {"required_keywords": ["refund", "processed"]},
        )
        assert evaluator.score == 100.0
        assert evaluator.generate_feedback() == "All keyword requirements met"

    def test_partial_required(self) -> None:
        evaluator = KeywordEvaluator(
            "Your refund is on its way.",
            {"required_keywords": ["refund", "tracking number", "apology"]},
        )
        assert evaluator.score == 33.33
        assert evaluator.missing_required == ["tracking number", "apology"]
        assert "Missing required keywords: tracking number, apology" in (
            evaluator.generate_feedback()
        )

    def test_forbidden_reduces_score(self) -> None:
        evaluator = KeywordEvaluator(
            "Unfortunately we cannot help.",
            {
                "required_keywords": ["help"],
                "forbidden_keywords": ["unfortunately", "sorry"],
            },
        )
        assert evaluator.score == 50.0
        feedback = evaluator.generate_feedback()
        assert "Forbidden keywords found: unfortunately" in feedback

    def test_score_never_negative(self) -> None:
        evaluator = KeywordEvaluator(
            "sorry", {"required_keywords": ["thanks"], "forbidden_keywords": ["sorry"]}
        )
        assert evaluator.score == 0.0

    def test_case_sensitive(self) -> None:
        evaluator = KeywordEvaluator(
            "Refund issued", {"required_keywords": ["refund"], "case_sensitive": True}
        )
        assert evaluator.score == 0.0

    def test_no_keywords_scores_full(self) -> None:
        assert KeywordEvaluator("anything").score == 100.0

    def test_blank_keywords_ignored(self) -> None:
        evaluator = KeywordEvaluator("hello", {"required_keywords": ["hello", "  "]})
        assert evaluator.score == 100.0


@pytest.mark.unit
class TestExactMatchEvaluator:
    """Tests for ExactMatchEvaluator."""

    @pytest.mark.parametrize(
        "text,config,matches",
        [
            ("Paris", {"expected_text": "Paris"}, True),
            ("  paris \n", {"expected_text": "PARIS"}, True),
            ("paris", {"expected_text": "Paris", "case_sensitive": True}, False),
            (" Paris", {"expected_text": "Paris", "trim_whitespace": False}, False),
            ("Paris, France", {"expected_text": "Paris"}, False),
        ],
        ids=["exact", "trim_and_case", "case_sensitive", "no_trim", "different"],
    )
    def test_matching(self, text: str, config: dict[str, Any], matches: bool) -> None:
        evaluator = ExactMatchEvaluator(text, config)
        assert evaluator.score == (100.0 if matches else 0.0)
        expected_feedback = (
            "Response matches the expected text"
            if matches
            else "Response does not match the expected text"
        )
        assert evaluator.generate_feedback() == expected_feedback

    def test_default_threshold_requires_match(self) -> None:
        assert ExactMatchEvaluator("no", {"expected_text": "yes"}).passed() is False


@pytest.mark.unit
class TestPatternMatchEvaluator:
    """Tests for PatternMatchEvaluator."""

    def test_pattern_found_is_case_insensitive(self) -> None:
        assert pattern_found(r"order #\d+", "Your ORDER #123 shipped")

    def test_invalid_regex_falls_back_to_substring(self) -> None:
        assert pattern_found("[unclosed", "text with [UNCLOSED bracket")
        assert not pattern_found("[unclosed", "nothing here")

    def test_match_all_is_proportional(self) -> None:
        evaluator = PatternMatchEvaluator(
            "Call 555-1234 today",
            {"patterns": [r"\d{3}-\d{4}", r"[\w.]+@\w+\.com"]},
        )
        assert evaluator.score == 50.0
        assert evaluator.matched_patterns == [r"\d{3}-\d{4}"]
        assert "Matched 1/2 patterns" in evaluator.generate_feedback()

    def test_match_any(self) -> None:
        evaluator = PatternMatchEvaluator(
            "Call 555-1234 today",
            {"patterns": [r"\d{3}-\d{4}", r"@"], "match_all": False},
        )
        assert evaluator.score == 100.0

    def test_all_matched_feedback(self) -> None:
        evaluator = PatternMatchEvaluator("abc 123", {"patterns": ["abc", r"\d+"]})
        assert evaluator.generate_feedback() == "All 2 patterns matched"

    def test_no_patterns(self) -> None:
        evaluator = PatternMatchEvaluator("anything")
        assert evaluator.score == 100.0
        assert evaluator.generate_feedback() == "No patterns configured"
