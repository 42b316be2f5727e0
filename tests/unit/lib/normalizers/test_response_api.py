"""Unit tests for the OpenAI Responses API normalizer."""

from typing import Any

import pytest

from prompt_tracker.lib.normalizers.response_api import ResponseApiNormalizer

CITATIONS = [
    {
        "type": "url_citation",
        "url": "https://en.wikipedia.org/wiki/Paris",
        "title": "Paris - Wikipedia",
        "start_index": 0,
        "end_index": 5,
    },
    {
        "type": "url_citation",
        "url": "https://www.britannica.com/place/Paris",
        "title": "Paris | Britannica",
        "start_index": 6,
        "end_index": 12,
    },
]


@pytest.fixture
def response_payload() -> dict[str, Any]:
    return {
        "id": "resp_1",
        "model": "gpt-4o",
        "status": "completed",
        "output": [
            {
                "type": "web_search_call",
                "id": "ws_1",
                "status": "completed",
                "action": {
                    "type": "search",
                    "query": "capital of France",
                    "sources": [
                        {"url": "https://en.wikipedia.org/wiki/Paris", "title": "Paris"}
                    ],
                },
            },
            {
                "type": "web_search_call",
                "id": "ws_2",
                "status": "completed",
                "action": {"type": "search", "queries": ["Paris population"]},
            },
            {
                "type": "file_search_call",
                "id": "fs_1",
                "queries": ["travel policy"],
                "results": [{"filename": "policy.pdf", "score": 0.91}],
            },
            {
                "type": "code_interpreter_call",
                "id": "ci_1",
                "status": "completed",
                "code": "import math\nprint(math.pi)",
                "outputs": [
                    {"type": "logs", "logs": "3.14159"},
                    {"type": "image", "file_id": "file-plot"},
                ],
            },
            {
                "type": "function_call",
                "call_id": "call_9",
                "name": "lookup_city",
                "arguments": '{"name": "Paris"}',
            },
            {"type": "function_call_output", "call_id": "call_9", "output": "found"},
            {
                "type": "message",
                "role": "assistant",
                "content": [
                    {
                        "type": "output_text",
                        "text": "Paris is the capital of France.",
                        "annotations": CITATIONS,
                    }
                ],
            },
        ],
        "usage": {"input_tokens": 40, "output_tokens": 25, "total_tokens": 65},
    }


@pytest.mark.unit
class TestNormalizeSingle:
    """Tests for ResponseApiNormalizer.normalize_single."""

    def test_text_tool_calls_and_metadata(
        self, response_payload: dict[str, Any]
    ) -> None:
        result = ResponseApiNormalizer().normalize_single(response_payload)
        assert result.text == "Paris is the capital of France."
        assert [c.function_name for c in result.tool_calls] == ["lookup_city"]
        assert result.tool_calls[0].id == "call_9"
        assert result.tool_calls[0].arguments == {"name": "Paris"}
        assert result.metadata["status"] == "completed"
        assert result.metadata["usage"]["input_tokens"] == 40

    def test_output_text_fallback(self) -> None:
        result = ResponseApiNormalizer().normalize_single({"output_text": "Hi there"})
        assert result.text == "Hi there"


@pytest.mark.unit
class TestNormalizeConversation:
    """Tests for ResponseApiNormalizer.normalize_conversation."""

    def test_output_items_feed_tool_results(
        self, response_payload: dict[str, Any]
    ) -> None:
        conversation = ResponseApiNormalizer().normalize_conversation(
            response_payload
        )

        assert len(conversation.messages) == 1
        assert conversation.messages[0].content == "Paris is the capital of France."
        assert conversation.messages[0].turn == 1

        assert conversation.tool_usage[0].function_name == "lookup_city"
        assert conversation.tool_usage[0].result == "found"

        file_search = conversation.file_search_results[0]
        assert file_search.query == "travel policy"
        assert file_search.files == ["policy.pdf"]
        assert file_search.scores == [0.91]

        execution = conversation.code_interpreter_results[0]
        assert execution.language == "python"
        assert execution.output == "3.14159"
        assert execution.files_created == ["file-plot"]
        assert execution.status == "completed"

    def test_web_search_calls_share_citations(
        self, response_payload: dict[str, Any]
    ) -> None:
        """Test every web search call carries the response's url citations."""
        conversation = ResponseApiNormalizer().normalize_conversation(
            response_payload
        )
        first, second = conversation.web_search_results
        assert first.query == "capital of France"
        assert second.query == "Paris population"
        assert first.sources[0].url == "https://en.wikipedia.org/wiki/Paris"
        assert second.sources == []
        assert len(first.citations) == 2
        assert [c.url for c in first.citations] == [c.url for c in second.citations]
        assert first.citations[1].title == "Paris | Britannica"

    def test_explicit_messages_take_precedence(
        self, response_payload: dict[str, Any]
    ) -> None:
        response_payload["messages"] = [
            {"role": "user", "content": "What is the capital of France?"},
            {"role": "assistant", "content": "Paris."},
            {"role": "user", "content": "Population?"},
            {"role": "assistant", "content": "About 2 million."},
        ]
        conversation = ResponseApiNormalizer().normalize_conversation(
            response_payload
        )
        assert [m.turn for m in conversation.messages] == [1, 1, 2, 2]
        assert len(conversation.web_search_results) == 2

    def test_code_interpreter_details_block(self) -> None:
        conversation = ResponseApiNormalizer().normalize_conversation(
            {
                "output": [
                    {
                        "type": "code_interpreter_call",
                        "id": "ci_2",
                        "status": "failed",
                        "code_interpreter": {
                            "code": "1/0",
                            "language": "python",
                            "output": None,
                            "error": "ZeroDivisionError",
                        },
                    }
                ]
            }
        )
        execution = conversation.code_interpreter_results[0]
        assert execution.language == "python"
        assert execution.output is None
        assert execution.error == "ZeroDivisionError"
        assert execution.status == "failed"
