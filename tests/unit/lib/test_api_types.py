"""Unit tests for ApiType classification."""

import logging

import pytest

from prompt_tracker.lib.api_types import (
    all_api_types,
    classify,
    display_name,
    from_config,
    is_valid,
    to_config,
)
from prompt_tracker.models.api_type import ApiType
from prompt_tracker.models.test_case import Testable


@pytest.mark.unit
class TestClassify:
    """Tests for classify()."""

    @pytest.mark.parametrize(
        "config,expected",
        [
            ({"provider": "openai"}, ApiType.OPENAI_CHAT_COMPLETION),
            (
                {"provider": "openai", "api": "chat_completions"},
                ApiType.OPENAI_CHAT_COMPLETION,
            ),
            ({"provider": "openai", "api": "responses"}, ApiType.OPENAI_RESPONSE_API),
            ({"provider": "openai_responses"}, ApiType.OPENAI_RESPONSE_API),
            ({"provider": "openai_assistants"}, ApiType.OPENAI_ASSISTANTS_API),
            (
                {"provider": "openai", "api": "assistants"},
                ApiType.OPENAI_ASSISTANTS_API,
            ),
            ({"kind": "assistant"}, ApiType.OPENAI_ASSISTANTS_API),
            ({"provider": "anthropic"}, ApiType.ANTHROPIC_MESSAGES),
            ({"provider": "Anthropic"}, ApiType.ANTHROPIC_MESSAGES),
            ({"provider": "ollama"}, ApiType.OPENAI_CHAT_COMPLETION),
            ({}, ApiType.OPENAI_CHAT_COMPLETION),
        ],
        ids=[
            "openai_default",
            "openai_chat",
            "openai_responses_api",
            "openai_responses_provider",
            "assistants_provider",
            "assistants_api",
            "assistant_kind",
            "anthropic",
            "anthropic_mixed_case",
            "ollama",
            "empty",
        ],
    )
    def test_classify_mapping(self, config: dict, expected: ApiType) -> None:
        assert classify(config) == expected

    def test_classify_none(self) -> None:
        assert classify(None) == ApiType.OPENAI_CHAT_COMPLETION

    def test_classify_object(self) -> None:
        """Test that objects exposing attributes are classified too."""
        testable = Testable(name="t", provider="openai", api="responses")
        assert classify(testable) == ApiType.OPENAI_RESPONSE_API

    def test_responses_rule_wins_over_assistant_kind(self) -> None:
        """Test the first matching rule wins."""
        config = {"provider": "openai", "api": "responses", "kind": "assistant"}
        assert classify(config) == ApiType.OPENAI_RESPONSE_API

    def test_unknown_provider_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test an unknown provider falls back to chat completions with a warning."""
        with caplog.at_level(logging.WARNING, logger="prompt_tracker"):
            result = classify({"provider": "mistral"})
        assert result == ApiType.OPENAI_CHAT_COMPLETION
        assert "Unknown provider 'mistral'" in caplog.text


@pytest.mark.unit
class TestApiTypeHelpers:
    """Tests for the helper functions around ApiType."""

    def test_from_config_known_pair(self) -> None:
        assert from_config("anthropic", "messages") == ApiType.ANTHROPIC_MESSAGES

    def test_from_config_unknown_pair(self) -> None:
        assert from_config("anthropic", "responses") is None

    def test_to_config_round_trips_through_from_config(self) -> None:
        for api_type in all_api_types():
            pair = to_config(api_type)
            assert from_config(pair["provider"], pair["api"]) == api_type

    def test_display_name(self) -> None:
        assert display_name(ApiType.OPENAI_RESPONSE_API) == "OpenAI Responses"
        assert display_name("custom_thing") == "Custom Thing"

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("anthropic_messages", True),
            (ApiType.OPENAI_ASSISTANTS_API, True),
            ("OPENAI_CHAT_COMPLETION", True),
            ("bogus", False),
            (None, False),
        ],
        ids=["value", "member", "upper_case", "bogus", "none"],
    )
    def test_is_valid(self, value: object, expected: bool) -> None:
        assert is_valid(value) is expected

    def test_all_api_types_order(self) -> None:
        assert all_api_types()[0] == ApiType.OPENAI_CHAT_COMPLETION
        assert len(all_api_types()) == 4
