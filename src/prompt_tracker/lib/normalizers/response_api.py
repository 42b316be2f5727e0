"""Normalizer for OpenAI Responses API payloads.

The Responses API returns a flat ``output`` array of typed items
(``message``, ``function_call``, ``file_search_call``, ``web_search_call``,
``code_interpreter_call``). Each item type feeds one part of the normalized
shape.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from prompt_tracker.lib.normalizers.base import (
    BaseNormalizer,
    as_list,
    calculate_turn,
    detect_language,
    extract_text_content,
    file_search_from_results,
    message_role,
    parse_arguments,
    text_or_none,
    tool_call_from_dict,
)
from prompt_tracker.models.api_type import ApiType
from prompt_tracker.models.normalized import (
    Citation,
    CodeInterpreterResult,
    FileSearchResult,
    Message,
    NormalizedConversation,
    NormalizedSingleResponse,
    ToolCall,
    ToolUsage,
    WebSearchResult,
    WebSearchSource,
)


def _items(output: Any, item_type: str) -> list[dict[str, Any]]:
    return [
        item
        for item in as_list(output)
        if isinstance(item, Mapping) and item.get("type") == item_type
    ]


def _output_text(item: Mapping[str, Any]) -> str:
    return "\n".join(
        str(part.get("text"))
        for part in as_list(item.get("content"))
        if isinstance(part, Mapping)
        and part.get("type") == "output_text"
        and part.get("text") is not None
    )


class ResponseApiNormalizer(BaseNormalizer):
    """Normalize ``responses.create`` payloads."""

    api_type = ApiType.OPENAI_RESPONSE_API

    def _single_from_dict(self, data: dict[str, Any]) -> NormalizedSingleResponse:
        output = data.get("output")
        parts = [_output_text(item) for item in _items(output, "message")]
        text = "\n".join(part for part in parts if part)
        if not text:
            text = extract_text_content(data.get("output_text") or data.get("text"))
        return NormalizedSingleResponse(
            text=text,
            tool_calls=self._tool_calls(output),
            metadata=self._metadata(data),
        )

    def _conversation_from_dict(self, data: dict[str, Any]) -> NormalizedConversation:
        output = data.get("output")
        raw_messages = [m for m in as_list(data.get("messages")) if isinstance(m, dict)]

        if raw_messages:
            messages = [
                Message(
                    role=message_role(raw),
                    content=extract_text_content(raw.get("content")),
                    tool_calls=[
                        tool_call_from_dict(tc)
                        for tc in as_list(raw.get("tool_calls"))
                        if isinstance(tc, Mapping)
                    ],
                    turn=raw.get("turn") or calculate_turn(raw_messages, index),
                )
                for index, raw in enumerate(raw_messages)
            ]
        else:
            # Output items belong to a single response turn
            messages = [
                Message(role=message_role(item), content=_output_text(item), turn=1)
                for item in _items(output, "message")
            ]

        return NormalizedConversation(
            messages=messages,
            tool_usage=self._tool_usage(output),
            file_search_results=self._file_search_results(output),
            web_search_results=self._web_search_results(output),
            code_interpreter_results=self._code_interpreter_results(output),
            metadata=self._metadata(data),
        )

    def _tool_calls(self, output: Any) -> list[ToolCall]:
        return [
            ToolCall(
                id=text_or_none(item.get("call_id") or item.get("id")),
                type="function",
                function_name=text_or_none(item.get("name")),
                arguments=parse_arguments(item.get("arguments")),
            )
            for item in _items(output, "function_call")
        ]

    def _tool_usage(self, output: Any) -> list[ToolUsage]:
        results = {
            item.get("call_id"): item.get("output")
            for item in _items(output, "function_call_output")
        }
        return [
            ToolUsage(
                function_name=text_or_none(item.get("name")),
                call_id=text_or_none(item.get("call_id")),
                arguments=parse_arguments(item.get("arguments")),
                result=results.get(item.get("call_id")),
            )
            for item in _items(output, "function_call")
        ]

    def _file_search_results(self, output: Any) -> list[FileSearchResult]:
        file_searches = []
        for item in _items(output, "file_search_call"):
            query = item.get("query")
            if query is None and as_list(item.get("queries")):
                query = item["queries"][0]
            file_searches.append(file_search_from_results(query, item.get("results")))
        return file_searches

    def _web_search_results(self, output: Any) -> list[WebSearchResult]:
        # The provider attaches every url_citation of the response to each call
        citations = self._url_citations(output)
        web_searches = []
        for item in _items(output, "web_search_call"):
            action = item.get("action")
            if not isinstance(action, Mapping):
                action = {}
            queries = as_list(action.get("queries"))
            query = action.get("query") or (queries[0] if queries else None)
            sources = as_list(action.get("sources")) or as_list(item.get("sources"))
            web_searches.append(
                WebSearchResult(
                    id=text_or_none(item.get("id")),
                    status=text_or_none(item.get("status")),
                    query=text_or_none(query or item.get("query")),
                    sources=[
                        WebSearchSource(
                            title=text_or_none(source.get("title")),
                            url=text_or_none(source.get("url")),
                            snippet=text_or_none(source.get("snippet")),
                        )
                        for source in sources
                        if isinstance(source, Mapping)
                    ],
                    citations=list(citations),
                )
            )
        return web_searches

    def _url_citations(self, output: Any) -> list[Citation]:
        citations = []
        for item in _items(output, "message"):
            for part in as_list(item.get("content")):
                if not isinstance(part, Mapping):
                    continue
                for annotation in as_list(part.get("annotations")):
                    if (
                        isinstance(annotation, Mapping)
                        and annotation.get("type") == "url_citation"
                    ):
                        citations.append(
                            Citation(
                                title=text_or_none(annotation.get("title")),
                                url=text_or_none(annotation.get("url")),
                                start_index=annotation.get("start_index"),
                                end_index=annotation.get("end_index"),
                            )
                        )
        return citations

    def _code_interpreter_results(self, output: Any) -> list[CodeInterpreterResult]:
        executions = []
        for item in _items(output, "code_interpreter_call"):
            details = item.get("code_interpreter")
            if not isinstance(details, Mapping):
                details = {}
            code = details.get("code") or item.get("code")
            executions.append(
                CodeInterpreterResult(
                    id=text_or_none(item.get("id")),
                    status=text_or_none(item.get("status")),
                    code=text_or_none(code),
                    language=text_or_none(details.get("language"))
                    or detect_language(code),
                    output=self._code_output(
                        details.get("output")
                        if "output" in details
                        else item.get("outputs")
                    ),
                    files_created=as_list(details.get("files_created"))
                    or self._output_files(item.get("outputs")),
                    error=text_or_none(details.get("error") or item.get("error")),
                )
            )
        return executions

    def _code_output(self, value: Any) -> str | None:
        if value is None:
            return None
        if isinstance(value, str):
            return value
        if isinstance(value, list):
            return "\n".join(
                str(part.get("text") or part.get("logs"))
                for part in value
                if isinstance(part, Mapping) and (part.get("text") or part.get("logs"))
            )
        return str(value)

    def _output_files(self, outputs: Any) -> list[Any]:
        return [
            part.get("file_id") or part.get("url")
            for part in as_list(outputs)
            if isinstance(part, Mapping)
            and part.get("type") == "image"
            and (part.get("file_id") or part.get("url"))
        ]

    def _metadata(self, data: dict[str, Any]) -> dict[str, Any]:
        metadata = {
            "id": data.get("id"),
            "model": data.get("model"),
            "status": data.get("status"),
            "usage": data.get("usage"),
        }
        return {key: value for key, value in metadata.items() if value is not None}
