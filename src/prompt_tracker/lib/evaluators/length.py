"""Response length evaluator."""

from typing import Any, ClassVar

from prompt_tracker.lib.errors import EvaluatorConfigurationError
from prompt_tracker.lib.evaluators.base import ParamType, SingleResponseEvaluator


class LengthEvaluator(SingleResponseEvaluator):
    """Pass when the response length (in characters) falls within bounds."""

    key = "length"
    name = "Length"
    description = "Checks that the response length is within a character range"
    DEFAULT_CONFIG: ClassVar[dict[str, Any]] = {
        "min_length": 0,
        "max_length": 10000,
        "threshold_score": 80,
    }
    PARAM_SCHEMA: ClassVar[dict[str, ParamType]] = {
        "min_length": ParamType.INTEGER,
        "max_length": ParamType.INTEGER,
        "threshold_score": ParamType.INTEGER,
    }

    def _validate_config(self) -> None:
        super()._validate_config()
        if int(self.config["min_length"]) > int(self.config["max_length"]):
            raise EvaluatorConfigurationError(
                self.key, "min_length must not exceed max_length"
            )

    @property
    def length(self) -> int:
        return len(self.response_text)

    def evaluate_score(self) -> float:
        min_length = int(self.config["min_length"])
        max_length = int(self.config["max_length"])
        return 100.0 if min_length <= self.length <= max_length else 0.0

    def generate_feedback(self) -> str:
        min_length = self.config["min_length"]
        max_length = self.config["max_length"]
        if self.length < int(min_length):
            return (
                f"Response too short: {self.length} characters (minimum {min_length})"
            )
        if self.length > int(max_length):
            return (
                f"Response too long: {self.length} characters (maximum {max_length})"
            )
        return f"Response length {self.length} is within {min_length}-{max_length}"

    def metadata(self) -> dict[str, Any]:
        return {**super().metadata(), "length": self.length}
