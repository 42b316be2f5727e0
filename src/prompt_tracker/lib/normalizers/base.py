"""Base class and shared helpers for response normalizers.

A normalizer reduces one provider's raw response into the canonical
``NormalizedSingleResponse`` / ``NormalizedConversation`` shapes. Raw input
is coerced into the ``RawResponse`` union first; ``None`` or missing input
always yields the empty default shape.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from prompt_tracker.lib.logging_config import get_logger
from prompt_tracker.models.api_type import ApiType
from prompt_tracker.models.normalized import (
    EmptyResponse,
    FileSearchResult,
    Message,
    MessageRole,
    NormalizedConversation,
    NormalizedSingleResponse,
    StructuredResponse,
    TextResponse,
    ToolCall,
    ToolUsage,
    coerce_raw,
    parse_arguments,
)

logger = get_logger(__name__)

__all__ = [
    "BaseNormalizer",
    "as_list",
    "calculate_turn",
    "detect_language",
    "dig",
    "extract_text_content",
    "file_search_from_results",
    "mappings",
    "message_role",
    "parse_arguments",
    "text_or_none",
    "tool_call_from_dict",
]

# Errors raised by malformed-but-structured provider payloads
RECOVERABLE_ERRORS = (PydanticValidationError, TypeError, AttributeError, ValueError)

# Provider role names and the canonical role each maps to
ROLE_NAMES: dict[str, MessageRole] = {
    "user": "user",
    "assistant": "assistant",
    "system": "system",
    "tool": "tool",
    "developer": "system",
    "function": "tool",
}

_SINGLE_FIELDS = frozenset(NormalizedSingleResponse.model_fields)
_CONVERSATION_FIELDS = frozenset(NormalizedConversation.model_fields)


def text_or_none(value: Any) -> str | None:
    """Stringify a scalar identifier, keeping None as None."""
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def message_role(message: Mapping[str, Any]) -> MessageRole:
    """Return a message's canonical role.

    A missing role is treated as assistant. Provider names such as
    ``developer`` are folded into the canonical roles; an unknown role is
    logged and treated as assistant.
    """
    role = text_or_none(message.get("role"))
    if not role:
        return "assistant"
    canonical = ROLE_NAMES.get(role)
    if canonical is None:
        logger.warning(f"Unknown message role '{role}', treating as assistant")
        return "assistant"
    return canonical


def dig(data: Any, *path: str | int) -> Any:
    """Safely walk nested mappings and sequences.

    Args:
        data: Root value
        *path: Keys and list indexes to follow

    Returns:
        The value at the path, or None when any step is missing
    """
    current = data
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, Sequence) or isinstance(current, str):
                return None
            if step >= len(current) or step < -len(current):
                return None
            current = current[step]
        else:
            if not isinstance(current, Mapping):
                return None
            current = current.get(step)
        if current is None:
            return None
    return current


def as_list(value: Any) -> list[Any]:
    """Return value if it is a list, otherwise an empty list."""
    return value if isinstance(value, list) else []


def mappings(value: Any) -> list[Mapping[str, Any]]:
    """Return the mapping entries of value if it is a list."""
    return [item for item in as_list(value) if isinstance(item, Mapping)]


def extract_text_content(content: Any) -> str:
    """Flatten message content into plain text.

    Handles plain strings and content-part arrays, where parts may be strings
    or objects of type ``text`` / ``output_text`` / ``input_text`` whose text
    is either a string or an object with a ``value`` key.
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, Mapping) and item.get("type") in (
                "text",
                "output_text",
                "input_text",
            ):
                text = item.get("text")
                if isinstance(text, Mapping):
                    text = text.get("value")
                if text is not None:
                    parts.append(str(text))
        return "\n".join(parts)
    return str(content)


def calculate_turn(messages: Sequence[Any], index: int) -> int:
    """Count user messages in ``messages[0..index]`` inclusive, minimum 1.

    Messages before the first user message belong to turn 1.
    """
    turn = 0
    for position, message in enumerate(messages):
        if position > index:
            break
        if isinstance(message, Mapping) and message.get("role") == "user":
            turn += 1
    return max(turn, 1)


def detect_language(code: str | None) -> str | None:
    """Guess the language of an executed code snippet.

    Returns:
        ``python``, ``javascript``, ``ruby`` or None when nothing matches
    """
    if not code:
        return None
    if "import " in code or "def " in code or "print(" in code:
        return "python"
    if "const " in code or "let " in code or "function " in code:
        return "javascript"
    if "require " in code or ("def " in code and "end" in code):
        return "ruby"
    return None


def is_normalized_single(data: Mapping[str, Any]) -> bool:
    """Whether a mapping already has the NormalizedSingleResponse shape."""
    return "text" in data and set(data) <= _SINGLE_FIELDS


def is_normalized_conversation(data: Mapping[str, Any]) -> bool:
    """Whether a mapping already has the NormalizedConversation shape.

    Provider messages never carry a ``turn`` key, so a conversation whose
    messages all have one was produced by a normalizer.
    """
    messages = data.get("messages")
    if not isinstance(messages, list) or not set(data) <= _CONVERSATION_FIELDS:
        return False
    return all(isinstance(m, Mapping) and "turn" in m for m in messages)


def file_search_from_results(query: Any, results: Any) -> FileSearchResult:
    """Build a FileSearchResult from a list of ``{filename, score}`` hits.

    Both ``filename`` (Responses API) and ``file_name`` (Assistants API) are
    understood. Files and scores keep the order of the hits.
    """
    hits = mappings(results)
    return FileSearchResult(
        query=text_or_none(query),
        files=[
            str(hit.get("filename") or hit.get("file_name") or "") for hit in hits
        ],
        scores=[hit.get("score") for hit in hits],
    )


def tool_call_from_dict(data: Mapping[str, Any]) -> ToolCall:
    """Build a ToolCall from either the nested or the flat representation.

    Nested: ``{"id", "type", "function": {"name", "arguments"}}``.
    Flat: ``{"id", "type", "function_name", "arguments"}``.
    """
    function = data.get("function")
    if isinstance(function, Mapping):
        name = function.get("name")
        arguments = function.get("arguments")
    else:
        name = data.get("function_name") or data.get("name")
        arguments = data.get("arguments")
    return ToolCall(
        id=text_or_none(data.get("id") or data.get("call_id")),
        type=text_or_none(data.get("type")) or "function",
        function_name=text_or_none(name),
        arguments=parse_arguments(arguments),
    )


class BaseNormalizer(ABC):
    """Reduce one provider's raw responses to the canonical shapes."""

    api_type: ApiType

    def normalize_single(self, raw: Any) -> NormalizedSingleResponse:
        """Normalize a raw single-turn response.

        Args:
            raw: Raw provider output (mapping, text or None)

        Returns:
            NormalizedSingleResponse; never raises on malformed input
        """
        if isinstance(raw, NormalizedSingleResponse):
            return raw.model_copy(deep=True)
        match coerce_raw(raw):
            case EmptyResponse():
                return NormalizedSingleResponse()
            case TextResponse(text=text):
                return NormalizedSingleResponse(text=text)
            case StructuredResponse(data=data):
                try:
                    if is_normalized_single(data):
                        return NormalizedSingleResponse.model_validate(data)
                    return self._single_from_dict(data)
                except RECOVERABLE_ERRORS as e:
                    logger.warning(
                        f"{type(self).__name__} could not normalize response: {e}"
                    )
        return NormalizedSingleResponse()

    def normalize_conversation(self, raw: Any) -> NormalizedConversation:
        """Normalize raw conversation data.

        Args:
            raw: Raw provider output (mapping, text or None)

        Returns:
            NormalizedConversation; never raises on malformed input
        """
        if isinstance(raw, NormalizedConversation):
            return raw.model_copy(deep=True)
        match coerce_raw(raw):
            case EmptyResponse():
                return NormalizedConversation()
            case TextResponse(text=text):
                return NormalizedConversation(
                    messages=[Message(role="assistant", content=text, turn=1)]
                )
            case StructuredResponse(data=data):
                try:
                    if is_normalized_conversation(data):
                        return NormalizedConversation.model_validate(data)
                    return self._conversation_from_dict(data)
                except RECOVERABLE_ERRORS as e:
                    logger.warning(
                        f"{type(self).__name__} could not normalize conversation: {e}"
                    )
        return NormalizedConversation()

    @abstractmethod
    def _single_from_dict(self, data: dict[str, Any]) -> NormalizedSingleResponse:
        """Normalize a structured single response."""

    @abstractmethod
    def _conversation_from_dict(self, data: dict[str, Any]) -> NormalizedConversation:
        """Normalize structured conversation data."""

    def _wrap_single(self, single: NormalizedSingleResponse) -> NormalizedConversation:
        """Represent a single response as a one-message conversation."""
        tool_usage = [
            ToolUsage(
                function_name=call.function_name,
                call_id=call.id,
                arguments=call.arguments,
            )
            for call in single.tool_calls
        ]
        return NormalizedConversation(
            messages=[
                Message(
                    role="assistant",
                    content=single.text,
                    tool_calls=single.tool_calls,
                    turn=1,
                )
            ],
            tool_usage=tool_usage,
            metadata=single.metadata,
        )
