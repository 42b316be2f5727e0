"""Token usage tracking model."""

from types import NotImplementedType
from typing import Any

from pydantic import BaseModel, Field, ValidationInfo, field_validator


class TokenUsage(BaseModel):
    """Token usage reported by a provider response.

    Supports addition so usage can be summed across the normalized
    responses of a batch:
        total = TokenUsage.zero()
        total = total + TokenUsage.from_usage(metadata["usage"])
    """

    prompt_tokens: int = Field(ge=0)
    completion_tokens: int = Field(ge=0)
    total_tokens: int = Field(ge=0)

    @field_validator("total_tokens")
    @classmethod
    def validate_total(cls, value: int, info: ValidationInfo) -> int:
        """Ensure totals equal prompt + completion."""
        prompt = info.data.get("prompt_tokens", 0)
        completion = info.data.get("completion_tokens", 0)
        if value != prompt + completion:
            raise ValueError(
                f"total_tokens ({value}) must equal "
                f"prompt_tokens ({prompt}) + completion_tokens ({completion})"
            )
        return value

    def __add__(self, other: object) -> "TokenUsage | NotImplementedType":
        """Add two TokenUsage instances together.

        Args:
            other: Another TokenUsage instance to add.

        Returns:
            New TokenUsage with summed token counts, or NotImplemented if
            other is not a TokenUsage instance.
        """
        if not isinstance(other, TokenUsage):
            return NotImplemented
        return TokenUsage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )

    @classmethod
    def zero(cls) -> "TokenUsage":
        """Create a TokenUsage instance with all counts set to zero."""
        return cls(prompt_tokens=0, completion_tokens=0, total_tokens=0)

    @classmethod
    def from_usage(cls, usage: Any) -> "TokenUsage":
        """Build a TokenUsage from a provider ``usage`` block.

        Understands both the OpenAI naming (``prompt_tokens`` /
        ``completion_tokens``) and the Responses/Anthropic naming
        (``input_tokens`` / ``output_tokens``). Anything else yields zero.

        Args:
            usage: Usage mapping taken from normalized response metadata

        Returns:
            TokenUsage with the total recomputed from its parts
        """
        if not isinstance(usage, dict):
            return cls.zero()
        prompt = usage.get("prompt_tokens", usage.get("input_tokens")) or 0
        completion = usage.get("completion_tokens", usage.get("output_tokens")) or 0
        try:
            prompt, completion = int(prompt), int(completion)
        except (TypeError, ValueError):
            return cls.zero()
        return cls(
            prompt_tokens=max(prompt, 0),
            completion_tokens=max(completion, 0),
            total_tokens=max(prompt, 0) + max(completion, 0),
        )
