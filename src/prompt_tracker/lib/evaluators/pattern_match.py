"""Regular expression pattern evaluator."""

import re
from typing import Any, ClassVar

from prompt_tracker.lib.evaluators.base import ParamType, SingleResponseEvaluator
from prompt_tracker.lib.logging_config import get_logger

logger = get_logger(__name__)


def pattern_found(pattern: str, text: str) -> bool:
    """Search ``text`` for ``pattern`` case-insensitively.

    Invalid regular expressions fall back to a case-insensitive substring
    check.
    """
    try:
        return re.search(pattern, text, re.IGNORECASE) is not None
    except re.error:
        logger.debug(f"Invalid regex {pattern!r}, falling back to substring match")
        return pattern.lower() in text.lower()


class PatternMatchEvaluator(SingleResponseEvaluator):
    """Check the response against regular expressions.

    With ``match_all`` the score is the share of patterns found; otherwise
    any single match scores 100.
    """

    key = "pattern_match"
    name = "Pattern Match"
    description = "Checks the response against regular expression patterns"
    DEFAULT_CONFIG: ClassVar[dict[str, Any]] = {
        "patterns": [],
        "match_all": True,
        "threshold_score": 100,
    }
    PARAM_SCHEMA: ClassVar[dict[str, ParamType]] = {
        "patterns": ParamType.ARRAY,
        "match_all": ParamType.BOOLEAN,
        "threshold_score": ParamType.INTEGER,
    }

    @property
    def patterns(self) -> list[str]:
        return [str(p) for p in self.config.get("patterns") or [] if str(p)]

    @property
    def matched_patterns(self) -> list[str]:
        return [p for p in self.patterns if pattern_found(p, self.response_text)]

    def evaluate_score(self) -> float:
        if not self.patterns:
            return 100.0
        matched = len(self.matched_patterns)
        if self.config["match_all"]:
            return round(matched / len(self.patterns) * 100, 2)
        return 100.0 if matched else 0.0

    def generate_feedback(self) -> str:
        if not self.patterns:
            return "No patterns configured"
        missing = [p for p in self.patterns if p not in self.matched_patterns]
        if not missing:
            return f"All {len(self.patterns)} patterns matched"
        return (
            f"Matched {len(self.matched_patterns)}/{len(self.patterns)} patterns. "
            f"Unmatched: {', '.join(missing)}"
        )

    def metadata(self) -> dict[str, Any]:
        return {**super().metadata(), "matched_patterns": self.matched_patterns}
