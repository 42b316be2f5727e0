"""Evaluator configuration attached to a test."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EvaluationMode(str, Enum):
    """How an evaluator's result is recorded."""

    SCORED = "scored"
    BINARY = "binary"


class EvaluatorConfig(BaseModel):
    """Attachment of one evaluator to a test.

    The ``config`` mapping is handed to the evaluator class unchanged, merged
    over its defaults. ``threshold`` is validated here, at configuration time,
    so that a misconfigured evaluator never reaches a test run.
    """

    model_config = ConfigDict(extra="forbid")

    evaluator_key: str = Field(..., min_length=1, description="Registry key")
    evaluation_mode: EvaluationMode = Field(
        default=EvaluationMode.SCORED, description="scored or binary"
    )
    threshold: int | None = Field(
        default=None, ge=0, le=100, description="Pass threshold (0-100)"
    )
    config: dict[str, Any] = Field(
        default_factory=dict, description="Evaluator-specific settings"
    )
    enabled: bool = Field(default=True, description="Whether the evaluator runs")

    @model_validator(mode="after")
    def validate_threshold_required(self) -> "EvaluatorConfig":
        """Require a threshold for scored evaluators.

        Raises:
            ValueError: If evaluation_mode is scored and threshold is missing
        """
        if self.evaluation_mode == EvaluationMode.SCORED and self.threshold is None:
            raise ValueError(
                f"threshold is required for scored evaluator '{self.evaluator_key}'"
            )
        return self

    def effective_config(self) -> dict[str, Any]:
        """Return the evaluator settings with the threshold folded in.

        ``threshold`` becomes the evaluator's ``threshold_score`` unless the
        evaluator settings already define one.
        """
        merged = dict(self.config)
        if self.threshold is not None and "threshold_score" not in merged:
            merged["threshold_score"] = self.threshold
        return merged
