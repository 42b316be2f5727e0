"""Normalizer for Anthropic Messages API responses."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from prompt_tracker.lib.normalizers.base import (
    BaseNormalizer,
    calculate_turn,
    mappings,
    message_role,
    parse_arguments,
    text_or_none,
)
from prompt_tracker.models.api_type import ApiType
from prompt_tracker.models.normalized import (
    Message,
    MessageRole,
    NormalizedConversation,
    NormalizedSingleResponse,
    ToolCall,
    ToolUsage,
)


def _blocks(content: Any, block_type: str) -> list[Mapping[str, Any]]:
    return [block for block in mappings(content) if block.get("type") == block_type]


def _text(content: Any) -> str:
    if isinstance(content, str):
        return content
    return "\n".join(
        str(block["text"]) for block in _blocks(content, "text") if block.get("text")
    )


def _tool_calls(content: Any) -> list[ToolCall]:
    return [
        ToolCall(
            id=text_or_none(block.get("id")),
            type="function",
            function_name=text_or_none(block.get("name")),
            arguments=parse_arguments(block.get("input")),
        )
        for block in _blocks(content, "tool_use")
    ]


def _role(message: Mapping[str, Any]) -> MessageRole:
    """Return the message role, mapping tool-result-only user turns to ``tool``.

    Anthropic sends tool results back in ``user`` messages; they are not a
    new user turn.
    """
    content = message.get("content")
    blocks = mappings(content)
    if (
        message.get("role") == "user"
        and blocks
        and all(block.get("type") == "tool_result" for block in blocks)
    ):
        return "tool"
    return message_role(message)


class AnthropicNormalizer(BaseNormalizer):
    """Normalize Anthropic ``messages.create`` payloads.

    Text comes from ``content`` blocks of type ``text``; tool calls from
    blocks of type ``tool_use``.
    """

    api_type = ApiType.ANTHROPIC_MESSAGES

    def _single_from_dict(self, data: dict[str, Any]) -> NormalizedSingleResponse:
        content = data.get("content")
        if content is None:
            content = data.get("text")
        return NormalizedSingleResponse(
            text=_text(content),
            tool_calls=_tool_calls(content),
            metadata=self._metadata(data),
        )

    def _conversation_from_dict(self, data: dict[str, Any]) -> NormalizedConversation:
        raw_messages = data.get("messages")
        if not isinstance(raw_messages, list):
            if "content" in data or "text" in data:
                return self._wrap_single(self._single_from_dict(data))
            return NormalizedConversation()

        entries = [{**raw, "role": _role(raw)} for raw in mappings(raw_messages)]
        messages = [
            Message(
                role=entry["role"],
                content=_text(entry.get("content")),
                tool_calls=_tool_calls(entry.get("content")),
                turn=calculate_turn(entries, index),
            )
            for index, entry in enumerate(entries)
        ]
        return NormalizedConversation(
            messages=messages,
            tool_usage=self._tool_usage(messages, entries),
            metadata=self._metadata(data),
        )

    def _tool_usage(
        self, messages: list[Message], entries: list[dict[str, Any]]
    ) -> list[ToolUsage]:
        results = {
            block.get("tool_use_id"): block.get("content")
            for entry in entries
            for block in _blocks(entry.get("content"), "tool_result")
        }
        return [
            ToolUsage(
                function_name=call.function_name,
                call_id=call.id,
                arguments=call.arguments,
                result=results.get(call.id),
            )
            for message in messages
            for call in message.tool_calls
        ]

    def _metadata(self, data: dict[str, Any]) -> dict[str, Any]:
        metadata = {
            "id": data.get("id"),
            "model": data.get("model"),
            "stop_reason": data.get("stop_reason"),
            "usage": data.get("usage"),
        }
        return {key: value for key, value in metadata.items() if value is not None}
