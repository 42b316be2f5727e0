"""Code interpreter evaluator."""

from __future__ import annotations

from functools import cached_property
from typing import Any, ClassVar

from prompt_tracker.lib.evaluators.base import ConversationalEvaluator, ParamType
from prompt_tracker.lib.evaluators.pattern_match import pattern_found
from prompt_tracker.models.normalized import CodeInterpreterResult

BASE_POINTS = 30
SUCCESS_POINTS = 20
LANGUAGE_POINTS = 15
PATTERN_POINTS = 20
FILES_POINTS = 10
LINES_POINTS = 5


def execution_succeeded(result: CodeInterpreterResult) -> bool:
    """An execution succeeded if it completed (or has no status) without error."""
    return result.status in ("completed", None) and result.error is None


class CodeInterpreterEvaluator(ConversationalEvaluator):
    """Verify that the model executed code, checking output and files.

    Without executions the score is 0 when ``require_code_execution`` is set
    and 100 otherwise. With executions the score sums 30 base points, 20 for
    success, 15 for the language, up to 20 for output patterns, 10 for created
    files and 5 for the code line minimum. Checks that are not configured
    award their points.
    """

    key = "code_interpreter"
    name = "Code Interpreter"
    description = "Verifies that the model executed code and checks output/files"
    DEFAULT_CONFIG: ClassVar[dict[str, Any]] = {
        "require_code_execution": True,
        "expected_language": None,
        "require_successful_execution": True,
        "output_patterns": [],
        "require_all_patterns": False,
        "expect_files_created": False,
        "min_code_lines": 0,
        "threshold_score": 80,
    }
    PARAM_SCHEMA: ClassVar[dict[str, ParamType]] = {
        "require_code_execution": ParamType.BOOLEAN,
        "expected_language": ParamType.STRING,
        "require_successful_execution": ParamType.BOOLEAN,
        "output_patterns": ParamType.ARRAY,
        "require_all_patterns": ParamType.BOOLEAN,
        "expect_files_created": ParamType.BOOLEAN,
        "min_code_lines": ParamType.INTEGER,
        "threshold_score": ParamType.INTEGER,
    }

    @property
    def expected_language(self) -> str | None:
        language = str(self.config.get("expected_language") or "").strip()
        return language or None

    @property
    def output_patterns(self) -> list[str]:
        return [
            str(p).strip()
            for p in self.config.get("output_patterns") or []
            if str(p).strip()
        ]

    @property
    def min_code_lines(self) -> int:
        return int(self.config.get("min_code_lines") or 0)

    @cached_property
    def languages(self) -> list[str]:
        """Unique languages across executions."""
        seen: list[str] = []
        for result in self.code_interpreter_results:
            if result.language and result.language not in seen:
                seen.append(result.language)
        return seen

    @cached_property
    def combined_output(self) -> str:
        return "\n".join(
            r.output for r in self.code_interpreter_results if r.output is not None
        )

    @cached_property
    def files_created(self) -> list[Any]:
        return [f for r in self.code_interpreter_results for f in r.files_created]

    @cached_property
    def successful_executions(self) -> list[CodeInterpreterResult]:
        return [r for r in self.code_interpreter_results if execution_succeeded(r)]

    @cached_property
    def total_code_lines(self) -> int:
        return sum(
            len(r.code.splitlines()) for r in self.code_interpreter_results if r.code
        )

    @cached_property
    def matched_patterns(self) -> list[str]:
        output = self.combined_output
        return [p for p in self.output_patterns if pattern_found(p, output)]

    def language_matches(self) -> bool:
        if self.expected_language is None:
            return True
        expected = self.expected_language.lower()
        return any(language.lower() == expected for language in self.languages)

    def _pattern_score(self) -> float:
        if not self.output_patterns:
            return 100.0
        matched, total = len(self.matched_patterns), len(self.output_patterns)
        if self.config["require_all_patterns"]:
            return matched / total * 100
        return 100.0 if matched else 0.0

    def evaluate_score(self) -> float:
        results = self.code_interpreter_results
        if not results:
            return 0.0 if self.config["require_code_execution"] else 100.0

        total = float(BASE_POINTS)
        if (
            not self.config["require_successful_execution"]
            or len(self.successful_executions) == len(results)
        ):
            total += SUCCESS_POINTS
        if self.language_matches():
            total += LANGUAGE_POINTS
        total += self._pattern_score() * PATTERN_POINTS / 100
        if not self.config["expect_files_created"] or self.files_created:
            total += FILES_POINTS
        if self.min_code_lines <= 0 or self.total_code_lines >= self.min_code_lines:
            total += LINES_POINTS
        return round(total, 2)

    def generate_feedback(self) -> str:
        results = self.code_interpreter_results
        if not results:
            if self.config["require_code_execution"]:
                return "✗ Code interpreter was not used."
            return "Code interpreter was not used (not required)."

        parts = [
            "Code Interpreter Evaluation Results:",
            f"Executions: {len(results)}",
            f"Languages: {', '.join(self.languages) or 'Unknown'}",
            f"Total code lines: {self.total_code_lines}",
            f"Successful: {len(self.successful_executions)}/{len(results)}",
        ]
        if self.expected_language:
            verdict = "matched" if self.language_matches() else "not matched"
            parts.append(f"Expected language: {self.expected_language} ({verdict})")
        if self.output_patterns:
            parts.append(
                f"Output patterns matched: "
                f"{len(self.matched_patterns)}/{len(self.output_patterns)}"
            )
        if self.config["expect_files_created"]:
            parts.append(f"Files created: {len(self.files_created)}")
        if self.passed():
            parts.append("✓ Code interpreter requirements met.")
        else:
            parts.append("✗ Some requirements not met.")
        return "\n".join(parts)

    def metadata(self) -> dict[str, Any]:
        return {
            **super().metadata(),
            "execution_count": len(self.code_interpreter_results),
            "successful_count": len(self.successful_executions),
            "languages": self.languages,
            "total_code_lines": self.total_code_lines,
            "files_created": self.files_created,
            "matched_patterns": self.matched_patterns,
            "expected_language": self.expected_language,
            "output_patterns": self.output_patterns,
        }
