"""Evaluators scoring normalized responses and conversations.

Example:
    >>> from prompt_tracker.lib.evaluators import EvaluatorRegistry
    >>> evaluator = EvaluatorRegistry.build("keyword", response, config)
    >>> evaluation = evaluator.evaluate()
"""

from prompt_tracker.lib.evaluators.base import (
    ALL_APIS,
    BaseEvaluator,
    ConversationalEvaluator,
    EvaluatorCategory,
    ParamType,
    SingleResponseEvaluator,
)
from prompt_tracker.lib.evaluators.judge import JudgeClient, parse_judge_score
from prompt_tracker.lib.evaluators.registry import EvaluatorRegistry, EvaluatorSpec

__all__ = [
    "ALL_APIS",
    "BaseEvaluator",
    "ConversationalEvaluator",
    "EvaluatorCategory",
    "EvaluatorRegistry",
    "EvaluatorSpec",
    "JudgeClient",
    "ParamType",
    "SingleResponseEvaluator",
    "parse_judge_score",
]
