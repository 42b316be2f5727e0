"""Keyword presence evaluator."""

from typing import Any, ClassVar

from prompt_tracker.lib.evaluators.base import ParamType, SingleResponseEvaluator


class KeywordEvaluator(SingleResponseEvaluator):
    """Score a response by required keywords present and forbidden ones absent.

    The score is the share of required keywords found, reduced by the share
    of forbidden keywords found. With no keywords configured the score is 100.
    """

    key = "keyword"
    name = "Keyword"
    description = "Checks for required keywords and the absence of forbidden ones"
    DEFAULT_CONFIG: ClassVar[dict[str, Any]] = {
        "required_keywords": [],
        "forbidden_keywords": [],
        "case_sensitive": False,
        "threshold_score": 80,
    }
    PARAM_SCHEMA: ClassVar[dict[str, ParamType]] = {
        "required_keywords": ParamType.ARRAY,
        "forbidden_keywords": ParamType.ARRAY,
        "case_sensitive": ParamType.BOOLEAN,
        "threshold_score": ParamType.INTEGER,
    }

    def _keywords(self, key: str) -> list[str]:
        return [str(k).strip() for k in self.config.get(key) or [] if str(k).strip()]

    def _contains(self, keyword: str) -> bool:
        if self.config["case_sensitive"]:
            return keyword in self.response_text
        return keyword.lower() in self.response_text.lower()

    @property
    def found_required(self) -> list[str]:
        return [k for k in self._keywords("required_keywords") if self._contains(k)]

    @property
    def missing_required(self) -> list[str]:
        return [k for k in self._keywords("required_keywords") if not self._contains(k)]

    @property
    def found_forbidden(self) -> list[str]:
        return [k for k in self._keywords("forbidden_keywords") if self._contains(k)]

    def evaluate_score(self) -> float:
        required = self._keywords("required_keywords")
        forbidden = self._keywords("forbidden_keywords")

        score = 100.0
        if required:
            score = len(self.found_required) / len(required) * 100
        if forbidden:
            score -= len(self.found_forbidden) / len(forbidden) * 100
        return round(max(score, 0.0), 2)

    def generate_feedback(self) -> str:
        parts = []
        if self.missing_required:
            missing = ", ".join(self.missing_required)
            parts.append(f"Missing required keywords: {missing}")
        if self.found_forbidden:
            forbidden = ", ".join(self.found_forbidden)
            parts.append(f"Forbidden keywords found: {forbidden}")
        if not parts:
            return "All keyword requirements met"
        return "\n".join(parts)

    def metadata(self) -> dict[str, Any]:
        return {
            **super().metadata(),
            "found_required": self.found_required,
            "missing_required": self.missing_required,
            "found_forbidden": self.found_forbidden,
        }
