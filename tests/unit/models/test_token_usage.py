"""Unit tests for prompt_tracker.models.token_usage module."""

import pytest
from pydantic import ValidationError

from prompt_tracker.models.token_usage import TokenUsage


@pytest.mark.unit
class TestTokenUsage:
    """Tests for TokenUsage model."""

    def test_valid_token_usage(self) -> None:
        """Test creating a valid TokenUsage instance."""
        usage = TokenUsage(prompt_tokens=10, completion_tokens=20, total_tokens=30)
        assert usage.prompt_tokens == 10
        assert usage.completion_tokens == 20
        assert usage.total_tokens == 30

    def test_invalid_total_raises_validation_error(self) -> None:
        """Test that mismatched total_tokens raises ValidationError."""
        with pytest.raises(ValidationError):
            TokenUsage(prompt_tokens=10, completion_tokens=20, total_tokens=50)

    def test_negative_tokens_raises_validation_error(self) -> None:
        """Test that negative token values raise ValidationError."""
        with pytest.raises(ValidationError):
            TokenUsage(prompt_tokens=-1, completion_tokens=0, total_tokens=-1)


@pytest.mark.unit
class TestTokenUsageAddition:
    """Tests for TokenUsage.__add__ method."""

    def test_add_two_token_usages(self) -> None:
        """Test adding two TokenUsage instances."""
        usage1 = TokenUsage(prompt_tokens=10, completion_tokens=20, total_tokens=30)
        usage2 = TokenUsage(prompt_tokens=5, completion_tokens=15, total_tokens=20)
        result = usage1 + usage2
        assert result.prompt_tokens == 15
        assert result.completion_tokens == 35
        assert result.total_tokens == 50

    def test_add_with_non_token_usage_returns_not_implemented(self) -> None:
        """Test that adding non-TokenUsage returns NotImplemented."""
        usage = TokenUsage(prompt_tokens=10, completion_tokens=20, total_tokens=30)
        result = usage.__add__(42)  # type: ignore
        assert result is NotImplemented

    def test_iadd_works(self) -> None:
        """Test that += operator works with TokenUsage."""
        total = TokenUsage.zero()
        total += TokenUsage(prompt_tokens=1, completion_tokens=2, total_tokens=3)
        assert total.total_tokens == 3


@pytest.mark.unit
class TestTokenUsageFromUsage:
    """Tests for TokenUsage.from_usage."""

    @pytest.mark.parametrize(
        "usage,expected",
        [
            ({"prompt_tokens": 12, "completion_tokens": 9, "total_tokens": 21}, 21),
            ({"input_tokens": 7, "output_tokens": 3}, 10),
            ({"prompt_tokens": 5}, 5),
            ({"prompt_tokens": "abc"}, 0),
            (None, 0),
            ("not a mapping", 0),
        ],
        ids=["openai", "responses_naming", "partial", "non_numeric", "none", "text"],
    )
    def test_from_usage_totals(self, usage: object, expected: int) -> None:
        """Test provider usage blocks are read with a recomputed total."""
        assert TokenUsage.from_usage(usage).total_tokens == expected

    def test_from_usage_recomputes_inconsistent_total(self) -> None:
        """Test a provider total that disagrees with its parts is ignored."""
        usage = TokenUsage.from_usage(
            {"prompt_tokens": 2, "completion_tokens": 3, "total_tokens": 99}
        )
        assert usage.total_tokens == 5
