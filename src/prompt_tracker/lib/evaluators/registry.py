"""Evaluator registry.

The built-in evaluators are listed in ``_BUILTIN_EVALUATORS`` and registered
in that order the first time the registry is used. Extra evaluators can be
added at runtime with ``EvaluatorRegistry.register``.

Example:
    >>> spec = EvaluatorRegistry.get("length")
    >>> evaluator = EvaluatorRegistry.build("length", response, {"max_length": 50})
    >>> evaluator.evaluate().passed
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar

from prompt_tracker.lib.api_types import classify
from prompt_tracker.lib.errors import UnknownEvaluatorError
from prompt_tracker.lib.evaluators.base import BaseEvaluator, EvaluatorCategory
from prompt_tracker.lib.evaluators.code_interpreter import CodeInterpreterEvaluator
from prompt_tracker.lib.evaluators.conversation_judge import (
    ConversationJudgeEvaluator,
)
from prompt_tracker.lib.evaluators.exact_match import ExactMatchEvaluator
from prompt_tracker.lib.evaluators.file_search import FileSearchEvaluator
from prompt_tracker.lib.evaluators.function_call import FunctionCallEvaluator
from prompt_tracker.lib.evaluators.keyword import KeywordEvaluator
from prompt_tracker.lib.evaluators.length import LengthEvaluator
from prompt_tracker.lib.evaluators.llm_judge import LlmJudgeEvaluator
from prompt_tracker.lib.evaluators.pattern_match import PatternMatchEvaluator
from prompt_tracker.lib.evaluators.web_search import WebSearchEvaluator
from prompt_tracker.lib.logging_config import get_logger
from prompt_tracker.lib.normalizers import BaseNormalizer
from prompt_tracker.lib.normalizers import normalizer_for as _normalizer_for
from prompt_tracker.models.api_type import ApiType
from prompt_tracker.models.test_case import Test, Testable, TestMode

logger = get_logger(__name__)

_BUILTIN_EVALUATORS: list[tuple[type[BaseEvaluator], str]] = [
    (LengthEvaluator, "ruler"),
    (KeywordEvaluator, "key"),
    (ExactMatchEvaluator, "equals"),
    (PatternMatchEvaluator, "regex"),
    (LlmJudgeEvaluator, "robot"),
    (FunctionCallEvaluator, "gear"),
    (FileSearchEvaluator, "file-search"),
    (WebSearchEvaluator, "globe"),
    (CodeInterpreterEvaluator, "code"),
    (ConversationJudgeEvaluator, "comments"),
]

_MODE_CATEGORIES = {
    TestMode.SINGLE_TURN: EvaluatorCategory.SINGLE_RESPONSE,
    TestMode.CONVERSATIONAL: EvaluatorCategory.CONVERSATIONAL,
}


@dataclass(frozen=True)
class EvaluatorSpec:
    """Registration entry describing one evaluator."""

    key: str
    name: str
    description: str
    evaluator_class: type[BaseEvaluator]
    default_config: dict[str, Any] = field(default_factory=dict)
    icon: str | None = None

    @property
    def category(self) -> EvaluatorCategory:
        return self.evaluator_class.category()

    @property
    def requires_judge(self) -> bool:
        return self.evaluator_class.requires_judge

    def compatible_with_api(self, api_type: ApiType | str) -> bool:
        return self.evaluator_class.compatible_with_api(api_type)


def spec_for(
    evaluator_class: type[BaseEvaluator], icon: str | None = None
) -> EvaluatorSpec:
    """Build an EvaluatorSpec from an evaluator class's declarations."""
    return EvaluatorSpec(
        key=evaluator_class.key,
        name=evaluator_class.name,
        description=evaluator_class.description,
        evaluator_class=evaluator_class,
        default_config=dict(evaluator_class.DEFAULT_CONFIG),
        icon=icon,
    )


class EvaluatorRegistry:
    """Class-level table of available evaluators, keyed by evaluator key."""

    _registry: ClassVar[dict[str, EvaluatorSpec] | None] = None

    @classmethod
    def _table(cls) -> dict[str, EvaluatorSpec]:
        if cls._registry is None:
            cls._registry = {}
            for evaluator_class, icon in _BUILTIN_EVALUATORS:
                spec = spec_for(evaluator_class, icon)
                cls._registry[spec.key] = spec
            logger.debug(f"Registered {len(cls._registry)} built-in evaluators")
        return cls._registry

    @classmethod
    def all(cls) -> list[EvaluatorSpec]:
        """All registered evaluators in registration order."""
        return list(cls._table().values())

    @classmethod
    def get(cls, key: str) -> EvaluatorSpec | None:
        return cls._table().get(str(key))

    @classmethod
    def exists(cls, key: str) -> bool:
        return str(key) in cls._table()

    @classmethod
    def register(
        cls,
        evaluator_class: type[BaseEvaluator],
        *,
        key: str | None = None,
        name: str | None = None,
        description: str | None = None,
        default_config: dict[str, Any] | None = None,
        icon: str | None = None,
    ) -> EvaluatorSpec:
        """Register (or replace) an evaluator.

        Missing fields are taken from the evaluator class.

        Returns:
            The stored EvaluatorSpec
        """
        base = spec_for(evaluator_class, icon)
        spec = EvaluatorSpec(
            key=key or base.key,
            name=name or base.name,
            description=description or base.description,
            evaluator_class=evaluator_class,
            default_config=(
                dict(default_config)
                if default_config is not None
                else base.default_config
            ),
            icon=icon,
        )
        if not spec.key:
            raise ValueError("Evaluator key must not be empty")
        if spec.key in cls._table():
            logger.warning(f"Replacing registered evaluator '{spec.key}'")
        cls._table()[spec.key] = spec
        return spec

    @classmethod
    def unregister(cls, key: str) -> EvaluatorSpec | None:
        return cls._table().pop(str(key), None)

    @classmethod
    def reset(cls) -> None:
        """Drop runtime registrations and restore the built-in table."""
        cls._registry = None

    @classmethod
    def by_category(cls, category: EvaluatorCategory | str) -> list[EvaluatorSpec]:
        wanted = EvaluatorCategory(category)
        return [spec for spec in cls.all() if spec.category == wanted]

    @classmethod
    def for_api(cls, api_type: ApiType | str) -> list[EvaluatorSpec]:
        return [spec for spec in cls.all() if spec.compatible_with_api(api_type)]

    @classmethod
    def for_mode(cls, test_mode: TestMode | str) -> list[EvaluatorSpec]:
        return cls.by_category(_MODE_CATEGORIES[TestMode(test_mode)])

    @classmethod
    def for_test(cls, test: Test, testable: Testable) -> list[EvaluatorSpec]:
        """Evaluators matching the test mode and the testable's API."""
        api_type = classify(testable)
        return [
            spec
            for spec in cls.for_mode(test.test_mode)
            if spec.compatible_with_api(api_type)
        ]

    @classmethod
    def build(
        cls,
        key: str,
        data: Any,
        config: dict[str, Any] | None = None,
        **context: Any,
    ) -> BaseEvaluator:
        """Instantiate the evaluator registered under ``key``.

        Args:
            key: Evaluator key
            data: Normalized response or conversation
            config: Evaluator settings merged over its defaults
            **context: Passed to the evaluator (evaluation_mode, judge, ...)

        Raises:
            UnknownEvaluatorError: If no evaluator is registered under ``key``
        """
        spec = cls.get(key)
        if spec is None:
            raise UnknownEvaluatorError(key)
        merged = {**spec.default_config, **dict(config or {})}
        return spec.evaluator_class(data, merged, **context)

    @classmethod
    def normalizer_for(cls, api_type: ApiType | str) -> BaseNormalizer:
        return _normalizer_for(api_type)
