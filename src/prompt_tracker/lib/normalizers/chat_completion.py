"""Normalizer for OpenAI Chat Completions responses."""

from __future__ import annotations

from typing import Any

from prompt_tracker.lib.normalizers.base import (
    BaseNormalizer,
    as_list,
    calculate_turn,
    dig,
    extract_text_content,
    message_role,
    tool_call_from_dict,
)
from prompt_tracker.models.api_type import ApiType
from prompt_tracker.models.normalized import (
    Message,
    NormalizedConversation,
    NormalizedSingleResponse,
    ToolCall,
    ToolUsage,
)


def _first_present(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


class ChatCompletionNormalizer(BaseNormalizer):
    """Normalize ``chat.completions`` payloads.

    Single responses read ``choices[0].message``; conversations read a
    ``messages`` array. Tool results sent back as ``tool`` role messages are
    joined to the originating call through ``tool_call_id``.
    """

    api_type = ApiType.OPENAI_CHAT_COMPLETION

    def _single_from_dict(self, data: dict[str, Any]) -> NormalizedSingleResponse:
        content = _first_present(
            data.get("text"),
            dig(data, "choices", 0, "message", "content"),
            data.get("content"),
        )
        tool_calls = (
            data.get("tool_calls") or dig(data, "choices", 0, "message", "tool_calls")
        )
        return NormalizedSingleResponse(
            text=extract_text_content(content),
            tool_calls=self._tool_calls(tool_calls),
            metadata=self._metadata(data),
        )

    def _conversation_from_dict(self, data: dict[str, Any]) -> NormalizedConversation:
        raw_messages = data.get("messages")
        if not isinstance(raw_messages, list):
            if "choices" in data or "content" in data or "text" in data:
                return self._wrap_single(self._single_from_dict(data))
            return NormalizedConversation()

        raw_messages = [m for m in raw_messages if isinstance(m, dict)]
        messages = [
            Message(
                role=message_role(raw),
                content=extract_text_content(raw.get("content")),
                tool_calls=self._tool_calls(raw.get("tool_calls")),
                turn=calculate_turn(raw_messages, index),
            )
            for index, raw in enumerate(raw_messages)
        ]
        return NormalizedConversation(
            messages=messages,
            tool_usage=self._tool_usage(messages, raw_messages),
            metadata=self._metadata(data),
        )

    def _tool_calls(self, raw_calls: Any) -> list[ToolCall]:
        return [
            tool_call_from_dict(tc) for tc in as_list(raw_calls) if isinstance(tc, dict)
        ]

    def _tool_usage(
        self, messages: list[Message], raw_messages: list[dict[str, Any]]
    ) -> list[ToolUsage]:
        results = {
            raw.get("tool_call_id"): raw.get("content")
            for raw in raw_messages
            if raw.get("role") == "tool" and raw.get("tool_call_id")
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
            "finish_reason": dig(data, "choices", 0, "finish_reason"),
            "usage": data.get("usage"),
        }
        return {key: value for key, value in metadata.items() if value is not None}
