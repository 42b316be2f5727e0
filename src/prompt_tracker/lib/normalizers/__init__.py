"""Response normalizers, one per provider API shape.

Example:
    >>> from prompt_tracker.lib.normalizers import normalizer_for
    >>> normalizer = normalizer_for(ApiType.ANTHROPIC_MESSAGES)
    >>> normalizer.normalize_single(raw_response).text
"""

from prompt_tracker.lib.errors import ConfigError
from prompt_tracker.lib.normalizers.anthropic import AnthropicNormalizer
from prompt_tracker.lib.normalizers.assistants_api import AssistantsApiNormalizer
from prompt_tracker.lib.normalizers.base import BaseNormalizer
from prompt_tracker.lib.normalizers.chat_completion import ChatCompletionNormalizer
from prompt_tracker.lib.normalizers.response_api import ResponseApiNormalizer
from prompt_tracker.models.api_type import ApiType

NORMALIZERS: dict[ApiType, type[BaseNormalizer]] = {
    ApiType.OPENAI_CHAT_COMPLETION: ChatCompletionNormalizer,
    ApiType.OPENAI_RESPONSE_API: ResponseApiNormalizer,
    ApiType.OPENAI_ASSISTANTS_API: AssistantsApiNormalizer,
    ApiType.ANTHROPIC_MESSAGES: AnthropicNormalizer,
}


def normalizer_for(api_type: ApiType | str) -> BaseNormalizer:
    """Return a normalizer instance for an ApiType.

    Args:
        api_type: ApiType member or its string value

    Returns:
        Normalizer for that API shape

    Raises:
        ConfigError: If api_type is not a known ApiType
    """
    try:
        normalizer_class = NORMALIZERS[ApiType(api_type)]
    except ValueError as e:
        raise ConfigError("api_type", f"No normalizer for API type '{api_type}'") from e
    return normalizer_class()


__all__ = [
    "NORMALIZERS",
    "AnthropicNormalizer",
    "AssistantsApiNormalizer",
    "BaseNormalizer",
    "ChatCompletionNormalizer",
    "ResponseApiNormalizer",
    "normalizer_for",
]
