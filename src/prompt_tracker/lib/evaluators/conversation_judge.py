"""Conversation judge evaluator.

Asks an LLM judge to score every assistant message of a conversation, given
the conversation up to and including that message, and averages the scores.
"""

from __future__ import annotations

from typing import Any, ClassVar

from prompt_tracker.lib.errors import EvaluatorPreconditionError
from prompt_tracker.lib.evaluators.base import ConversationalEvaluator, ParamType
from prompt_tracker.lib.evaluators.judge import (
    JudgeClient,
    JudgeMixin,
    parse_judge_score,
)
from prompt_tracker.models.normalized import Message

CONTENT_PREVIEW_LENGTH = 100

JUDGE_PROMPT_TEMPLATE = """{instructions}

CONVERSATION CONTEXT:
{context}

MESSAGE TO EVALUATE:
{message}

Please provide:
1. A score from 0-100
2. Brief feedback explaining the score

Format your response as:
Score: [number]
Feedback: [your feedback]
"""


def format_context(messages: list[Message]) -> str:
    """Render messages as ``ROLE: content`` blocks."""
    return "\n\n".join(f"{m.role.upper()}: {m.content or ''}" for m in messages)


class ConversationJudgeEvaluator(JudgeMixin, ConversationalEvaluator):
    """Score each assistant message with an LLM judge.

    The final score is the mean of the per-message scores.

    Raises:
        EvaluatorPreconditionError: On evaluation, if the conversation has no
            messages or no assistant messages
    """

    key = "conversation_judge"
    name = "Conversation Judge"
    description = "Uses an LLM to evaluate each assistant message in a conversation"
    requires_judge = True
    DEFAULT_CONFIG: ClassVar[dict[str, Any]] = {
        "judge_model": "gpt-4o",
        "evaluation_prompt": (
            "Evaluate this assistant message for quality and appropriateness. "
            "Score 0-100."
        ),
        "threshold_score": 70,
    }
    PARAM_SCHEMA: ClassVar[dict[str, ParamType]] = {
        "judge_model": ParamType.STRING,
        "evaluation_prompt": ParamType.STRING,
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
        self._message_scores: list[dict[str, Any]] | None = None

    def build_prompt(self, index: int) -> str:
        """Judge prompt for the message at ``index`` in the conversation."""
        return JUDGE_PROMPT_TEMPLATE.format(
            instructions=self.config["evaluation_prompt"],
            context=format_context(self.messages[: index + 1]),
            message=self.messages[index].content or "",
        )

    @property
    def message_scores(self) -> list[dict[str, Any]]:
        """Judge verdict for each assistant message, computed once."""
        if self._message_scores is None:
            if not self.messages:
                raise EvaluatorPreconditionError("No messages found in conversation")
            if not self.assistant_messages:
                raise EvaluatorPreconditionError(
                    "No assistant messages found in conversation"
                )
            self._message_scores = [
                self._score_message(index, message)
                for index, message in enumerate(self.messages)
                if message.role == "assistant"
            ]
        return self._message_scores

    def _score_message(self, index: int, message: Message) -> dict[str, Any]:
        reply = self.ask_judge(self.build_prompt(index))
        return {
            "message_index": index,
            "turn": message.turn,
            "score": parse_judge_score(reply),
            "feedback": reply,
            "content_preview": (message.content or "")[:CONTENT_PREVIEW_LENGTH],
        }

    def evaluate_score(self) -> float:
        scores = [entry["score"] for entry in self.message_scores]
        return round(sum(scores) / len(scores), 2)

    def generate_feedback(self) -> str:
        scores = ", ".join(
            f"Turn {entry['turn']}: {entry['score']}" for entry in self.message_scores
        )
        return (
            f"Average conversation score: {self.score}/100. "
            f"Message scores: {scores}"
        )

    def metadata(self) -> dict[str, Any]:
        return {
            **super().metadata(),
            "message_scores": self.message_scores,
            "total_messages": len(self.assistant_messages),
            "threshold": self.threshold_score,
            "judge_model": self.judge_model,
        }
