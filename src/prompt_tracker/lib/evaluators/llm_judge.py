"""LLM judge evaluator for single responses."""

from __future__ import annotations

import json
from functools import cached_property
from typing import Any, ClassVar

from prompt_tracker.lib.evaluators.base import ParamType, SingleResponseEvaluator
from prompt_tracker.lib.evaluators.judge import (
    JudgeClient,
    JudgeMixin,
    parse_judge_score,
)
from prompt_tracker.lib.logging_config import get_logger
from prompt_tracker.models.api_type import ApiType

logger = get_logger(__name__)

JUDGE_PROMPT_TEMPLATE = """You are an expert evaluator of AI-generated responses. \
Please evaluate the following LLM response.

LLM RESPONSE TO EVALUATE:
{response}

EVALUATION INSTRUCTIONS:
{instructions}

Please provide your evaluation with:
- overall_score: A number from 0 to 100
- feedback: Detailed explanation of your score

Respond with a JSON object: {{"overall_score": <number>, "feedback": "<text>"}}
"""


def parse_judge_reply(reply: str) -> tuple[float, str]:
    """Read ``(score, feedback)`` from a judge reply.

    JSON replies with ``overall_score`` and ``feedback`` are preferred; any
    other reply is scored with ``parse_judge_score`` and kept as feedback.
    """
    try:
        payload = json.loads(reply)
    except json.JSONDecodeError:
        payload = None

    if isinstance(payload, dict) and "overall_score" in payload:
        try:
            score = float(payload["overall_score"])
        except (TypeError, ValueError):
            logger.warning(
                f"Judge returned a non-numeric overall_score: "
                f"{payload['overall_score']!r}"
            )
        else:
            return max(0.0, min(100.0, score)), str(payload.get("feedback") or "")
    return parse_judge_score(reply), reply.strip()


class LlmJudgeEvaluator(JudgeMixin, SingleResponseEvaluator):
    """Grade a response with an LLM judge and custom instructions."""

    key = "llm_judge"
    name = "LLM Judge"
    description = (
        "Uses an LLM to evaluate response quality based on custom instructions"
    )
    requires_judge = True
    DEFAULT_CONFIG: ClassVar[dict[str, Any]] = {
        "judge_model": "gpt-4o",
        "custom_instructions": (
            "Evaluate the quality and appropriateness of the response"
        ),
        "threshold_score": 70,
    }
    PARAM_SCHEMA: ClassVar[dict[str, ParamType]] = {
        "judge_model": ParamType.STRING,
        "custom_instructions": ParamType.STRING,
        "threshold_score": ParamType.INTEGER,
    }

    def __init__(
        self,
        data: Any,
        config: dict[str, Any] | None = None,
        *,
        judge: JudgeClient | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(data, config, **kwargs)
        self._init_judge(judge)

    @classmethod
    def compatible_with_apis(cls) -> list[ApiType | str]:
        return [ApiType.OPENAI_CHAT_COMPLETION, ApiType.ANTHROPIC_MESSAGES]

    @cached_property
    def judge_prompt(self) -> str:
        return JUDGE_PROMPT_TEMPLATE.format(
            response=self.response_text,
            instructions=self.config["custom_instructions"],
        )

    @cached_property
    def judge_reply(self) -> str:
        return self.ask_judge(self.judge_prompt)

    @cached_property
    def judge_result(self) -> tuple[float, str]:
        return parse_judge_reply(self.judge_reply)

    def evaluate_score(self) -> float:
        return self.judge_result[0]

    def generate_feedback(self) -> str:
        return self.judge_result[1]

    def metadata(self) -> dict[str, Any]:
        return {
            **super().metadata(),
            "judge_model": self.judge_model,
            "custom_instructions": self.config["custom_instructions"],
            "judge_prompt": self.judge_prompt,
            "raw_judge_response": self.judge_reply,
            "threshold_score": self.threshold_score,
        }
