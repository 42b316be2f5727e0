"""LLM judge plumbing shared by judge-based evaluators.

Judges are injected as plain callables taking a prompt and a model name and
returning the judge's text reply. Nothing in this package talks to an LLM
provider directly.
"""

from __future__ import annotations

import re
from typing import Any, Protocol

from prompt_tracker.lib.errors import EvaluationError, EvaluatorConfigurationError
from prompt_tracker.lib.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_JUDGE_SCORE = 50.0

_SCORE_LINE = re.compile(r"Score:\s*(\d+(?:\.\d+)?)", re.IGNORECASE)
_NUMBER = re.compile(r"\b(\d+(?:\.\d+)?)\b")


class JudgeClient(Protocol):
    """Callable that asks an LLM to grade a prompt."""

    def __call__(self, prompt: str, model: str) -> str: ...


def parse_judge_score(text: str | None) -> float:
    """Extract a 0-100 score from a judge reply.

    Looks for a ``Score: N`` line first (clamped to 0..100), then for the
    first number between 0 and 100 anywhere in the text.

    Args:
        text: Raw judge reply

    Returns:
        Parsed score, or 50.0 when the reply holds no usable number
    """
    if not text:
        return DEFAULT_JUDGE_SCORE

    match = _SCORE_LINE.search(text)
    if match:
        return max(0.0, min(100.0, float(match.group(1))))

    for candidate in _NUMBER.findall(text):
        value = float(candidate)
        if 0 <= value <= 100:
            return value
    return DEFAULT_JUDGE_SCORE


class JudgeMixin:
    """Holds the injected judge and wraps its failures.

    Evaluators using this mixin declare ``requires_judge = True`` so the
    runner passes its judge at build time.
    """

    key: str
    config: dict[str, Any]

    def _init_judge(self, judge: JudgeClient | None) -> None:
        if judge is None:
            raise EvaluatorConfigurationError(
                self.key, "an LLM judge must be provided to this evaluator"
            )
        self.judge = judge

    @property
    def judge_model(self) -> str:
        return str(self.config["judge_model"])

    def ask_judge(self, prompt: str) -> str:
        """Send ``prompt`` to the judge.

        Raises:
            EvaluationError: If the judge call fails
        """
        try:
            reply = self.judge(prompt, self.judge_model)
        except Exception as e:
            logger.error(f"Judge call failed for {self.key}: {e}", exc_info=True)
            raise EvaluationError(f"Judge call failed: {e}") from e
        return "" if reply is None else str(reply)
