"""API shape enumeration for testables."""

from enum import Enum


class ApiType(str, Enum):
    """Provider API shape a testable's responses come from.

    The value determines which normalizer is applied and which evaluators
    are compatible with a test run. It is always derived from the testable
    configuration and never stored on its own.
    """

    OPENAI_CHAT_COMPLETION = "openai_chat_completion"
    OPENAI_RESPONSE_API = "openai_response_api"
    OPENAI_ASSISTANTS_API = "openai_assistants_api"
    ANTHROPIC_MESSAGES = "anthropic_messages"
