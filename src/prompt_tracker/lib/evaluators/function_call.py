"""Function call evaluator.

Checks that the assistant called the expected functions during a
conversation, optionally verifying the arguments it passed.
"""

from __future__ import annotations

from collections.abc import Mapping
from functools import cached_property
from typing import Any, ClassVar

from prompt_tracker.lib.evaluators.base import ConversationalEvaluator, ParamType


def _as_text(value: Any) -> str:
    """Render a scalar argument value for comparison."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def arguments_match(expected: Mapping[str, Any] | None, actual: Any) -> bool:
    """Check whether ``expected`` is a subset of ``actual``.

    Nested mappings are compared recursively; other values are compared by
    their string form. Keys present only in ``actual`` are ignored.

    Args:
        expected: Expected arguments (empty or None matches anything)
        actual: Arguments the function was called with

    Returns:
        True if every expected key matches
    """
    if not expected:
        return True
    if not isinstance(actual, Mapping):
        return False
    for key, expected_value in expected.items():
        actual_value = actual.get(str(key))
        if isinstance(expected_value, Mapping) and isinstance(actual_value, Mapping):
            if not arguments_match(expected_value, actual_value):
                return False
        elif _as_text(actual_value) != _as_text(expected_value):
            return False
    return True


class FunctionCallEvaluator(ConversationalEvaluator):
    """Score the expected functions the assistant actually called.

    With ``require_all`` the score is ``round(matched / expected * 100)``;
    otherwise any match scores 100. With no expected functions the score
    is 100.
    """

    key = "function_call"
    name = "Function Call"
    description = "Checks if the assistant called expected functions"
    DEFAULT_CONFIG: ClassVar[dict[str, Any]] = {
        "expected_functions": [],
        "require_all": True,
        "check_arguments": False,
        "expected_arguments": {},
        "threshold_score": 80,
    }
    PARAM_SCHEMA: ClassVar[dict[str, ParamType]] = {
        "expected_functions": ParamType.ARRAY,
        "require_all": ParamType.BOOLEAN,
        "check_arguments": ParamType.BOOLEAN,
        "expected_arguments": ParamType.JSON,
        "threshold_score": ParamType.INTEGER,
    }

    @property
    def expected_functions(self) -> list[str]:
        return [str(f) for f in self.config.get("expected_functions") or []]

    @property
    def expected_arguments(self) -> dict[str, Any]:
        arguments = self.config.get("expected_arguments") or {}
        if not isinstance(arguments, Mapping):
            return {}
        return {str(name): value for name, value in arguments.items()}

    @cached_property
    def called_functions(self) -> list[str]:
        """Unique names of called functions in call order."""
        names: list[str] = []
        for call in self.all_tool_calls:
            if call.function_name and call.function_name not in names:
                names.append(call.function_name)
        return names

    def _calls_with_args(self, function_name: str) -> list[dict[str, Any]]:
        return [
            call.arguments
            for call in self.all_tool_calls
            if call.function_name == function_name
        ]

    def _arguments_ok(self, function_name: str) -> bool:
        expected = self.expected_arguments.get(function_name)
        if not expected:
            return True
        return any(
            arguments_match(expected, actual)
            for actual in self._calls_with_args(function_name)
        )

    @cached_property
    def matched_functions(self) -> list[str]:
        """Expected functions that were called (with matching arguments)."""
        matched = [f for f in self.expected_functions if f in self.called_functions]
        if self.config["check_arguments"]:
            matched = [f for f in matched if self._arguments_ok(f)]
        return matched

    @cached_property
    def argument_failures(self) -> list[str]:
        """Descriptions of called functions whose arguments did not match."""
        if not self.config["check_arguments"]:
            return []
        failures = []
        for function_name in self.expected_functions:
            if function_name not in self.called_functions:
                continue
            if self._arguments_ok(function_name):
                continue
            calls = self._calls_with_args(function_name)
            got = calls[0] if calls else "no args"
            failures.append(
                f"{function_name}: expected "
                f"{self.expected_arguments[function_name]!r}, got {got!r}"
            )
        return failures

    def evaluate_score(self) -> float:
        if not self.expected_functions:
            return 100.0
        matched = len(self.matched_functions)
        if self.config["require_all"]:
            return float(round(matched / len(self.expected_functions) * 100))
        return 100.0 if matched else 0.0

    def generate_feedback(self) -> str:
        expected = self.expected_functions
        if not expected:
            return "No expected functions specified - evaluation passed by default."

        called = ", ".join(self.called_functions) or "none"
        if self.config["require_all"]:
            missing = [f for f in expected if f not in self.matched_functions]
            if not missing:
                return f"✓ All expected functions were called: {', '.join(expected)}"
            feedback = (
                f"✗ Missing function calls: {', '.join(missing)}. Called: {called}"
            )
        else:
            if self.matched_functions:
                matched = ", ".join(self.matched_functions)
                return f"✓ Expected function(s) called: {matched}"
            feedback = (
                "✗ None of the expected functions were called. "
                f"Expected one of: {', '.join(expected)}. Called: {called}"
            )

        if self.argument_failures:
            feedback += f". Argument mismatches: {'; '.join(self.argument_failures)}"
        return feedback

    def metadata(self) -> dict[str, Any]:
        return {
            **super().metadata(),
            "expected_functions": self.expected_functions,
            "called_functions": self.called_functions,
            "matched_functions": self.matched_functions,
            "require_all": self.config["require_all"],
            "check_arguments": self.config["check_arguments"],
            "argument_failures": self.argument_failures,
            "threshold": self.threshold_score,
            "all_tool_calls": [call.model_dump() for call in self.all_tool_calls],
        }
