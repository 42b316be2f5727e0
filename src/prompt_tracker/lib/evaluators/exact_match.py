"""Exact text match evaluator."""

from typing import Any, ClassVar

from prompt_tracker.lib.evaluators.base import ParamType, SingleResponseEvaluator


class ExactMatchEvaluator(SingleResponseEvaluator):
    """Score 100 when the response equals ``expected_text``, otherwise 0."""

    key = "exact_match"
    name = "Exact Match"
    description = "Checks that the response matches the expected text exactly"
    DEFAULT_CONFIG: ClassVar[dict[str, Any]] = {
        "expected_text": "",
        "case_sensitive": False,
        "trim_whitespace": True,
        "threshold_score": 100,
    }
    PARAM_SCHEMA: ClassVar[dict[str, ParamType]] = {
        "expected_text": ParamType.STRING,
        "case_sensitive": ParamType.BOOLEAN,
        "trim_whitespace": ParamType.BOOLEAN,
        "threshold_score": ParamType.INTEGER,
    }

    def _prepare(self, text: str) -> str:
        if self.config["trim_whitespace"]:
            text = text.strip()
        if not self.config["case_sensitive"]:
            text = text.lower()
        return text

    @property
    def matches(self) -> bool:
        expected = str(self.config.get("expected_text") or "")
        return self._prepare(self.response_text) == self._prepare(expected)

    def evaluate_score(self) -> float:
        return 100.0 if self.matches else 0.0

    def generate_feedback(self) -> str:
        if self.matches:
            return "Response matches the expected text"
        return "Response does not match the expected text"
