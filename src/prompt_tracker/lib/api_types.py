"""Classification of testables by provider API shape.

The ApiType of a testable decides which normalizer handles its responses and
which evaluators may be attached to its tests. Classification is a pure
function of the testable configuration and never raises.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from prompt_tracker.lib.logging_config import get_logger
from prompt_tracker.models.api_type import ApiType

logger = get_logger(__name__)

# Providers that map onto the chat completion shape without a warning
KNOWN_CHAT_PROVIDERS = frozenset({"openai", "azure_openai", "ollama", "google"})

# (provider, api) pairs understood by from_config
_CONFIG_PAIRS: dict[tuple[str, str], ApiType] = {
    ("openai", "chat_completions"): ApiType.OPENAI_CHAT_COMPLETION,
    ("openai", "chat_completion"): ApiType.OPENAI_CHAT_COMPLETION,
    ("openai", "responses"): ApiType.OPENAI_RESPONSE_API,
    ("openai", "assistants"): ApiType.OPENAI_ASSISTANTS_API,
    ("anthropic", "messages"): ApiType.ANTHROPIC_MESSAGES,
}

_DISPLAY_NAMES: dict[ApiType, str] = {
    ApiType.OPENAI_CHAT_COMPLETION: "OpenAI Chat Completions",
    ApiType.OPENAI_RESPONSE_API: "OpenAI Responses",
    ApiType.OPENAI_ASSISTANTS_API: "OpenAI Assistants",
    ApiType.ANTHROPIC_MESSAGES: "Anthropic Messages",
}

_TO_CONFIG: dict[ApiType, dict[str, str]] = {
    ApiType.OPENAI_CHAT_COMPLETION: {"provider": "openai", "api": "chat_completions"},
    ApiType.OPENAI_RESPONSE_API: {"provider": "openai", "api": "responses"},
    ApiType.OPENAI_ASSISTANTS_API: {"provider": "openai", "api": "assistants"},
    ApiType.ANTHROPIC_MESSAGES: {"provider": "anthropic", "api": "messages"},
}


def _read(config: Any, key: str) -> Any:
    if isinstance(config, Mapping):
        return config.get(key)
    return getattr(config, key, None)


def _normalize(value: Any) -> str | None:
    if value is None:
        return None
    text = str(getattr(value, "value", value)).strip().lower()
    return text or None


def classify(testable_config: Any) -> ApiType:
    """Classify a testable configuration into an ApiType.

    Rules are applied in order and the first match wins:

    1. provider ``openai_responses`` (or provider ``openai`` with api
       ``responses``) -> OpenAI Responses API
    2. provider ``openai_assistants``, api ``assistants`` or an Assistant
       testable -> OpenAI Assistants API
    3. provider ``anthropic`` -> Anthropic Messages
    4. anything else -> OpenAI Chat Completions

    Args:
        testable_config: Mapping or object exposing ``provider`` and
            optionally ``api`` and ``kind``

    Returns:
        The resolved ApiType
    """
    if testable_config is None:
        return ApiType.OPENAI_CHAT_COMPLETION

    provider = _normalize(_read(testable_config, "provider"))
    api = _normalize(_read(testable_config, "api"))
    kind = _normalize(_read(testable_config, "kind"))

    if provider == "openai_responses" or (provider == "openai" and api == "responses"):
        return ApiType.OPENAI_RESPONSE_API
    if provider == "openai_assistants" or api == "assistants" or kind == "assistant":
        return ApiType.OPENAI_ASSISTANTS_API
    if provider == "anthropic":
        return ApiType.ANTHROPIC_MESSAGES

    if provider is not None and provider not in KNOWN_CHAT_PROVIDERS:
        logger.warning(
            f"Unknown provider '{provider}', treating responses as chat completions"
        )
    return ApiType.OPENAI_CHAT_COMPLETION


def from_config(provider: str | None, api: str | None) -> ApiType | None:
    """Resolve an ApiType from an explicit (provider, api) pair.

    Returns:
        The ApiType, or None when the pair is not recognized
    """
    key = (_normalize(provider) or "", _normalize(api) or "")
    return _CONFIG_PAIRS.get(key)


def to_config(api_type: ApiType) -> dict[str, str]:
    """Return the (provider, api) pair for an ApiType."""
    return dict(_TO_CONFIG[ApiType(api_type)])


def display_name(api_type: ApiType | str) -> str:
    """Return a human-readable name for an ApiType value."""
    try:
        return _DISPLAY_NAMES[ApiType(api_type)]
    except ValueError:
        return str(api_type).replace("_", " ").title()


def all_api_types() -> list[ApiType]:
    """Return every ApiType in declaration order."""
    return list(ApiType)


def is_valid(value: Any) -> bool:
    """Check whether a value names an ApiType."""
    try:
        ApiType(_normalize(value))
    except ValueError:
        return False
    return True
