"""Normalizer for OpenAI Assistants API threads.

Conversation input is ``{"messages": [...], "run_steps": [...]}``. Messages
carry the text of the thread; run steps carry tool execution details
(function outputs, file search hits, code interpreter runs).
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from prompt_tracker.lib.normalizers.base import (
    BaseNormalizer,
    calculate_turn,
    detect_language,
    dig,
    extract_text_content,
    file_search_from_results,
    mappings,
    message_role,
    text_or_none,
    tool_call_from_dict,
)
from prompt_tracker.models.api_type import ApiType
from prompt_tracker.models.normalized import (
    CodeInterpreterResult,
    FileSearchResult,
    Message,
    NormalizedConversation,
    NormalizedSingleResponse,
    ToolCall,
    ToolUsage,
)

MESSAGE_METADATA_KEYS = ("id", "role", "assistant_id", "thread_id", "run_id")
THREAD_METADATA_KEYS = ("thread_id", "run_id", "assistant_id", "usage")


def _step_tool_calls(run_steps: list[Mapping[str, Any]]) -> Iterator[Mapping[str, Any]]:
    """Yield every tool call recorded in ``run_steps[].step_details``."""
    for step in run_steps:
        yield from mappings(dig(step, "step_details", "tool_calls"))


def _pick(data: Mapping[str, Any], keys: tuple[str, ...]) -> dict[str, Any]:
    return {key: data[key] for key in keys if data.get(key) is not None}


class AssistantsApiNormalizer(BaseNormalizer):
    """Normalize Assistants API messages and run steps."""

    api_type = ApiType.OPENAI_ASSISTANTS_API

    def _single_from_dict(self, data: dict[str, Any]) -> NormalizedSingleResponse:
        messages = mappings(data.get("messages"))
        replies = [m for m in messages if m.get("role") == "assistant"]
        if replies:
            # The last assistant message is the reply under test
            data = dict(replies[-1])

        content = data.get("content")
        if content is None:
            content = data.get("text")
        return NormalizedSingleResponse(
            text=extract_text_content(content),
            tool_calls=self._tool_calls(data.get("tool_calls")),
            metadata=_pick(data, MESSAGE_METADATA_KEYS),
        )

    def _conversation_from_dict(self, data: dict[str, Any]) -> NormalizedConversation:
        raw_messages = mappings(data.get("messages"))
        run_steps = [dict(step) for step in mappings(data.get("run_steps"))]

        messages = [
            Message(
                role=message_role(raw),
                content=extract_text_content(raw.get("content")),
                tool_calls=self._tool_calls(raw.get("tool_calls")),
                turn=raw.get("turn") or calculate_turn(raw_messages, index),
            )
            for index, raw in enumerate(raw_messages)
        ]
        return NormalizedConversation(
            messages=messages,
            tool_usage=self._tool_usage(messages, run_steps),
            file_search_results=self._file_search_results(run_steps),
            code_interpreter_results=self._code_interpreter_results(run_steps),
            run_steps=run_steps,
            metadata=_pick(data, THREAD_METADATA_KEYS),
        )

    def _tool_calls(self, raw_calls: Any) -> list[ToolCall]:
        return [tool_call_from_dict(call) for call in mappings(raw_calls)]

    def _tool_usage(
        self, messages: list[Message], run_steps: list[dict[str, Any]]
    ) -> list[ToolUsage]:
        outputs: dict[Any, Any] = {}
        for call in _step_tool_calls(run_steps):
            output = call.get("output")
            if output is None:
                output = dig(call, "function", "output")
            outputs.setdefault(call.get("id"), output)

        return [
            ToolUsage(
                function_name=call.function_name,
                call_id=call.id,
                arguments=call.arguments,
                result=outputs.get(call.id),
            )
            for message in messages
            for call in message.tool_calls
        ]

    def _file_search_results(
        self, run_steps: list[dict[str, Any]]
    ) -> list[FileSearchResult]:
        file_searches = []
        for step in run_steps:
            # Entries extracted when the run was recorded take precedence
            recorded = mappings(step.get("file_search_results"))
            for entry in recorded:
                if "files" in entry:
                    file_searches.append(FileSearchResult.model_validate(entry))
                else:
                    query, results = entry.get("query"), entry.get("results")
                    file_searches.append(file_search_from_results(query, results))
            if recorded:
                continue

            for call in _step_tool_calls([step]):
                if call.get("type") == "file_search":
                    # The Assistants API does not expose the search query
                    results = dig(call, "file_search", "results")
                    file_searches.append(file_search_from_results(None, results))
        return file_searches

    def _code_interpreter_results(
        self, run_steps: list[dict[str, Any]]
    ) -> list[CodeInterpreterResult]:
        executions = []
        for call in _step_tool_calls(run_steps):
            if call.get("type") != "code_interpreter":
                continue
            details = call.get("code_interpreter")
            if not isinstance(details, Mapping):
                details = {}
            code = text_or_none(details.get("input")) or ""
            outputs = mappings(details.get("outputs"))
            executions.append(
                CodeInterpreterResult(
                    id=text_or_none(call.get("id")),
                    # No per-call status is reported by the Assistants API
                    status="completed",
                    code=code,
                    language=detect_language(code),
                    output=self._code_output(outputs),
                    files_created=[
                        {"file_id": dig(output, "image", "file_id")}
                        for output in outputs
                        if output.get("type") == "image"
                        and dig(output, "image", "file_id")
                    ],
                    error=None,
                )
            )
        return executions

    def _code_output(self, outputs: list[Mapping[str, Any]]) -> str:
        parts = []
        for output in outputs:
            match output.get("type"):
                case "logs":
                    value = output.get("logs")
                case "image":
                    value = "[Image output]"
                case _:
                    value = output.get("text")
            if value is not None:
                parts.append(str(value))
        return "\n".join(parts)
