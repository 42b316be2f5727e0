"""File search evaluator for OpenAI Assistants."""

from __future__ import annotations

import fnmatch
from functools import cached_property
from typing import Any, ClassVar

from prompt_tracker.lib.evaluators.base import ConversationalEvaluator, ParamType
from prompt_tracker.models.api_type import ApiType


def file_matches(searched: str | None, expected: str | None) -> bool:
    """Check whether a searched file name satisfies an expected name.

    Matches exactly, case-insensitively, when ``expected`` is a substring of
    ``searched``, or when ``expected`` is a ``*`` glob matching ``searched``.
    """
    if not searched or not expected:
        return False
    if searched == expected:
        return True
    lowered, wanted = searched.lower(), expected.lower()
    if lowered == wanted or wanted in lowered:
        return True
    if "*" in expected:
        return fnmatch.fnmatchcase(lowered, wanted)
    return False


class FileSearchEvaluator(ConversationalEvaluator):
    """Verify that the assistant searched within the expected files.

    Scoring is proportional: with ``require_all`` the score is the share of
    expected files searched; otherwise any match scores 100.
    """

    key = "file_search"
    name = "File Search"
    description = "Verifies that the assistant searched within expected files"
    DEFAULT_CONFIG: ClassVar[dict[str, Any]] = {
        "expected_files": [],
        "require_all": True,
        "threshold_score": 100,
    }
    PARAM_SCHEMA: ClassVar[dict[str, ParamType]] = {
        "expected_files": ParamType.ARRAY,
        "require_all": ParamType.BOOLEAN,
        "threshold_score": ParamType.INTEGER,
    }

    @classmethod
    def compatible_with_apis(cls) -> list[ApiType | str]:
        return [ApiType.OPENAI_ASSISTANTS_API]

    @property
    def expected_files(self) -> list[str]:
        return [
            str(name).strip()
            for name in self.config.get("expected_files") or []
            if str(name).strip()
        ]

    @cached_property
    def searched_files(self) -> list[str]:
        """Unique file names returned by any file search."""
        names: list[str] = []
        for result in self.file_search_results:
            for name in result.files:
                if name and name not in names:
                    names.append(name)
        return names

    @cached_property
    def matched_files(self) -> list[str]:
        return [
            expected
            for expected in self.expected_files
            if any(file_matches(searched, expected) for searched in self.searched_files)
        ]

    def evaluate_score(self) -> float:
        if not self.expected_files:
            return 100.0
        if not self.file_search_results:
            return 0.0
        matched = len(self.matched_files)
        if self.config["require_all"]:
            return round(matched / len(self.expected_files) * 100, 2)
        return 100.0 if matched else 0.0

    def generate_feedback(self) -> str:
        if not self.expected_files:
            return "No expected files configured for evaluation."

        unmatched = [f for f in self.expected_files if f not in self.matched_files]
        parts = [
            "File Search Evaluation Results:",
            f"Expected files: {', '.join(self.expected_files)}",
            f"Files searched: {', '.join(self.searched_files) or 'None'}",
            f"Matched files: {', '.join(self.matched_files) or 'None'}",
        ]
        if unmatched:
            parts.append(f"Missing files: {', '.join(unmatched)}")
        if self.passed():
            parts.append("✓ All required files were searched.")
        else:
            parts.append("✗ Some expected files were not searched.")
        return "\n".join(parts)

    def metadata(self) -> dict[str, Any]:
        return {
            **super().metadata(),
            "expected_files": self.expected_files,
            "matched_files": self.matched_files,
            "searched_files": self.searched_files,
            "file_search_calls": len(self.file_search_results),
            "require_all": self.config["require_all"],
        }
