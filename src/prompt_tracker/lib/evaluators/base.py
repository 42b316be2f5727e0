"""Evaluator base classes.

Every evaluator scores one normalized response or conversation on a 0-100
scale, decides pass/fail against ``threshold_score`` and explains itself in
plain-text feedback. ``evaluate()`` bundles this into an ``Evaluation``
record and is the only step with a side effect (the ``on_evaluation`` sink).

Two families exist:

- ``SingleResponseEvaluator`` reads a ``NormalizedSingleResponse``
- ``ConversationalEvaluator`` reads a ``NormalizedConversation``
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from enum import Enum
from functools import cached_property
from typing import Any, ClassVar

from prompt_tracker.lib.errors import EvaluatorConfigurationError
from prompt_tracker.lib.logging_config import get_logger
from prompt_tracker.lib.normalizers.base import (
    calculate_turn,
    extract_text_content,
    mappings,
    message_role,
    tool_call_from_dict,
)
from prompt_tracker.lib.normalizers.chat_completion import ChatCompletionNormalizer
from prompt_tracker.models.api_type import ApiType
from prompt_tracker.models.evaluator_config import EvaluationMode
from prompt_tracker.models.normalized import (
    CodeInterpreterResult,
    FileSearchResult,
    Message,
    NormalizedConversation,
    NormalizedSingleResponse,
    ToolCall,
    ToolUsage,
    WebSearchResult,
)
from prompt_tracker.models.test_result import Evaluation

logger = get_logger(__name__)

# Marker in compatible_with_apis() for evaluators that accept every API
ALL_APIS = "all"

OnEvaluation = Callable[[Evaluation], None]


class EvaluatorCategory(str, Enum):
    """Which normalized shape an evaluator consumes."""

    SINGLE_RESPONSE = "single_response"
    CONVERSATIONAL = "conversational"


class ParamType(str, Enum):
    """Declared type of an evaluator parameter for form processing."""

    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    ARRAY = "array"
    JSON = "json"
    STRING = "string"


def convert_param(value: Any, param_type: ParamType) -> Any:
    """Convert a form-submitted value to its declared type.

    Args:
        value: Raw value, usually a string from a form field
        param_type: Declared parameter type

    Returns:
        Converted value. Arrays given as text are split on newlines with
        blank lines dropped; invalid JSON becomes None.
    """
    match param_type:
        case ParamType.INTEGER:
            try:
                return int(float(value))
            except (TypeError, ValueError):
                return 0
        case ParamType.FLOAT:
            try:
                return float(value)
            except (TypeError, ValueError):
                return 0.0
        case ParamType.BOOLEAN:
            if isinstance(value, str):
                return value.strip().lower() in ("true", "1", "yes", "on")
            return value is True or value == 1
        case ParamType.ARRAY:
            if isinstance(value, str):
                return [line.strip() for line in value.split("\n") if line.strip()]
            if isinstance(value, list):
                return [item for item in value if item not in (None, "")]
            return []
        case ParamType.JSON:
            if isinstance(value, str) and value.strip():
                try:
                    return json.loads(value)
                except json.JSONDecodeError as e:
                    logger.warning(f"Failed to parse JSON parameter: {e}")
                    return None
            return value
        case ParamType.STRING:
            return "" if value is None else str(value)
    return value


class BaseEvaluator(ABC):
    """Abstract evaluator.

    Subclasses declare ``key``, ``name``, ``description``, ``DEFAULT_CONFIG``
    and ``PARAM_SCHEMA`` and implement ``evaluate_score``. Configuration passed
    at construction is merged over ``DEFAULT_CONFIG``.

    Attributes:
        config: Effective configuration (defaults merged with overrides)
        evaluation_mode: scored or binary recording of the result
        evaluation_context: Context string stored on the Evaluation
    """

    key: ClassVar[str] = ""
    name: ClassVar[str] = ""
    description: ClassVar[str] = ""
    DEFAULT_CONFIG: ClassVar[dict[str, Any]] = {"threshold_score": 80}
    PARAM_SCHEMA: ClassVar[dict[str, ParamType]] = {
        "threshold_score": ParamType.INTEGER
    }
    # Set by evaluators that need an injected LLM judge
    requires_judge: ClassVar[bool] = False

    def __init__(
        self,
        config: Mapping[str, Any] | None = None,
        *,
        evaluation_mode: EvaluationMode | str = EvaluationMode.SCORED,
        evaluation_context: str = "test_run",
        on_evaluation: OnEvaluation | None = None,
    ) -> None:
        """Initialize the evaluator.

        Args:
            config: Evaluator settings; unknown keys are kept as-is
            evaluation_mode: scored or binary
            evaluation_context: Where the evaluation is produced
            on_evaluation: Sink receiving the Evaluation built by evaluate()

        Raises:
            EvaluatorConfigurationError: If the settings are invalid
        """
        self.config: dict[str, Any] = {**self.DEFAULT_CONFIG, **dict(config or {})}
        self.evaluation_mode = EvaluationMode(evaluation_mode)
        self.evaluation_context = evaluation_context
        self.on_evaluation = on_evaluation
        self._validate_config()

    # ------------------------------------------------------------------
    # Class-level contract
    # ------------------------------------------------------------------

    @classmethod
    def compatible_with_apis(cls) -> list[ApiType | str]:
        """API types this evaluator accepts; ``[ALL_APIS]`` for every API."""
        return [ALL_APIS]

    @classmethod
    def compatible_with_api(cls, api_type: ApiType | str) -> bool:
        """Whether this evaluator accepts responses of ``api_type``."""
        apis = cls.compatible_with_apis()
        return ALL_APIS in apis or ApiType(api_type) in apis

    @classmethod
    @abstractmethod
    def category(cls) -> EvaluatorCategory:
        """Normalized shape this evaluator consumes."""

    @classmethod
    def param_schema(cls) -> dict[str, ParamType]:
        """Declared parameter types used by ``process_params``."""
        return dict(cls.PARAM_SCHEMA)

    @classmethod
    def process_params(cls, raw_params: Mapping[str, Any] | None) -> dict[str, Any]:
        """Convert raw form parameters according to ``param_schema``.

        Parameters missing from the schema pass through unchanged.
        """
        if not raw_params:
            return {}
        schema = cls.param_schema()
        return {
            str(key): convert_param(value, schema[key]) if key in schema else value
            for key, value in raw_params.items()
        }

    # ------------------------------------------------------------------
    # Instance contract
    # ------------------------------------------------------------------

    def _validate_config(self) -> None:
        threshold = self.config.get("threshold_score")
        if isinstance(threshold, bool) or not isinstance(threshold, int | float):
            raise EvaluatorConfigurationError(
                self.key or type(self).__name__,
                f"threshold_score must be a number, got {threshold!r}",
            )
        if not 0 <= threshold <= 100:
            raise EvaluatorConfigurationError(
                self.key or type(self).__name__,
                f"threshold_score must be between 0 and 100, got {threshold}",
            )

    @property
    def threshold_score(self) -> float:
        """Minimum score required to pass."""
        return float(self.config["threshold_score"])

    @abstractmethod
    def evaluate_score(self) -> float:
        """Compute the score from 0 to 100."""

    @cached_property
    def score(self) -> float:
        """Score clamped to 0..100, computed once per evaluator."""
        return max(0.0, min(100.0, float(self.evaluate_score())))

    def passed(self) -> bool:
        """Whether the score reaches ``threshold_score``."""
        return self.score >= self.threshold_score

    def generate_feedback(self) -> str:
        """Human-readable explanation of the result."""
        return ""

    def metadata(self) -> dict[str, Any]:
        """Structured details stored on the Evaluation."""
        return {"config": dict(self.config)}

    def evaluate(self) -> Evaluation:
        """Score, judge and explain the input as an Evaluation record.

        In binary mode the recorded score collapses to 100 (pass) or 0 (fail).

        Returns:
            The Evaluation, also handed to ``on_evaluation`` when set
        """
        passed = self.passed()
        score = self.score
        if self.evaluation_mode == EvaluationMode.BINARY:
            score = 100.0 if passed else 0.0

        evaluation = Evaluation(
            evaluator_type=type(self).__name__,
            evaluator_key=self.key or None,
            score=round(score, 2),
            passed=passed,
            feedback=self.generate_feedback() or "",
            metadata=self.metadata(),
            evaluation_context=self.evaluation_context,
            evaluation_mode=self.evaluation_mode,
        )
        logger.debug(
            f"{type(self).__name__} scored {evaluation.score} "
            f"(passed={evaluation.passed})"
        )
        if self.on_evaluation is not None:
            self.on_evaluation(evaluation)
        return evaluation


def coerce_single_response(data: Any) -> NormalizedSingleResponse:
    """Accept normalized or raw single-response input."""
    return ChatCompletionNormalizer().normalize_single(data)


def coerce_conversation(data: Any) -> NormalizedConversation:
    """Accept a NormalizedConversation or a conversation mapping.

    Mappings may use raw message shapes: content arrays are flattened, nested
    tool calls are flattened and missing turns are computed.
    """
    if isinstance(data, NormalizedConversation):
        return data
    if data is None:
        return NormalizedConversation()
    if not isinstance(data, Mapping):
        raise TypeError(
            f"Conversation data must be a mapping, got {type(data).__name__}"
        )

    raw_messages = mappings(data.get("messages"))
    messages = [
        Message(
            role=message_role(raw),
            content=extract_text_content(raw.get("content")),
            tool_calls=[
                tool_call_from_dict(call) for call in mappings(raw.get("tool_calls"))
            ],
            turn=raw.get("turn") or calculate_turn(raw_messages, index),
        )
        for index, raw in enumerate(raw_messages)
    ]
    fields = {
        key: value
        for key, value in data.items()
        if key in NormalizedConversation.model_fields and key != "messages"
    }
    return NormalizedConversation.model_validate({**fields, "messages": messages})


class SingleResponseEvaluator(BaseEvaluator):
    """Evaluator over one normalized response."""

    def __init__(
        self,
        data: NormalizedSingleResponse | Mapping[str, Any] | str | None,
        config: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize with a normalized (or raw) single response.

        Args:
            data: NormalizedSingleResponse, raw response mapping or text
            config: Evaluator settings
            **kwargs: Passed to BaseEvaluator
        """
        self.response = coerce_single_response(data)
        super().__init__(config, **kwargs)

    @classmethod
    def category(cls) -> EvaluatorCategory:
        return EvaluatorCategory.SINGLE_RESPONSE

    @property
    def response_text(self) -> str:
        return self.response.text

    @property
    def tool_calls(self) -> list[ToolCall]:
        return self.response.tool_calls

    @property
    def response_metadata(self) -> dict[str, Any]:
        return self.response.metadata


class ConversationalEvaluator(BaseEvaluator):
    """Evaluator over a normalized conversation."""

    def __init__(
        self,
        data: NormalizedConversation | Mapping[str, Any] | None,
        config: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize with a normalized conversation.

        Args:
            data: NormalizedConversation or equivalent mapping
            config: Evaluator settings
            **kwargs: Passed to BaseEvaluator
        """
        self.conversation = coerce_conversation(data)
        super().__init__(config, **kwargs)

    @classmethod
    def category(cls) -> EvaluatorCategory:
        return EvaluatorCategory.CONVERSATIONAL

    @property
    def messages(self) -> list[Message]:
        return self.conversation.messages

    @property
    def assistant_messages(self) -> list[Message]:
        return [m for m in self.messages if m.role == "assistant"]

    @property
    def user_messages(self) -> list[Message]:
        return [m for m in self.messages if m.role == "user"]

    @property
    def tool_usage(self) -> list[ToolUsage]:
        return self.conversation.tool_usage

    @property
    def file_search_results(self) -> list[FileSearchResult]:
        return self.conversation.file_search_results

    @property
    def web_search_results(self) -> list[WebSearchResult]:
        return self.conversation.web_search_results

    @property
    def code_interpreter_results(self) -> list[CodeInterpreterResult]:
        return self.conversation.code_interpreter_results

    @property
    def run_steps(self) -> list[dict[str, Any]]:
        return self.conversation.run_steps

    @property
    def all_tool_calls(self) -> list[ToolCall]:
        """Tool calls from messages, falling back to ``tool_usage``."""
        calls = [call for message in self.messages for call in message.tool_calls]
        if calls:
            return calls
        return [
            ToolCall(
                id=usage.call_id,
                function_name=usage.function_name,
                arguments=usage.arguments,
            )
            for usage in self.tool_usage
        ]
