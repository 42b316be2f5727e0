"""Web search evaluator.

Checks whether the model searched the web, which queries it used, which
domains it consulted and how many sources it consulted and cited.

Providers may attach the full citation list of a response to every web
search call. Sources and citations are therefore deduplicated by URL across
all calls before anything is counted.
"""

from __future__ import annotations

from collections.abc import Iterable
from functools import cached_property
from typing import Any, ClassVar
from urllib.parse import urlparse

from prompt_tracker.lib.evaluators.base import ConversationalEvaluator, ParamType
from prompt_tracker.models.normalized import Citation, WebSearchSource

BASE_SCORE = 40
QUERY_WEIGHT = 30
DOMAIN_WEIGHT = 20
CONSULTED_WEIGHT = 5
CITED_WEIGHT = 5


def unique_by_url(
    entries: Iterable[WebSearchSource | Citation],
) -> list[WebSearchSource | Citation]:
    """Keep the first entry for each URL, preserving order.

    Entries without a URL are never merged.
    """
    seen: set[str] = set()
    unique = []
    for entry in entries:
        if entry.url is not None:
            if entry.url in seen:
                continue
            seen.add(entry.url)
        unique.append(entry)
    return unique


def extract_domain(url: str | None) -> str | None:
    """Return the host part of a URL, or None if it has none."""
    if not url:
        return None
    try:
        return urlparse(url).hostname
    except ValueError:
        return None


def _ratio_score(matched: int, total: int, require_all: bool) -> float:
    if total == 0:
        return 100.0
    if require_all:
        return 100.0 if matched == total else matched / total * 100
    return 100.0 if matched > 0 else 0.0


def _minimum_score(actual: int, minimum: int) -> float:
    if minimum <= 0 or actual >= minimum:
        return 100.0
    return actual / minimum * 100


class WebSearchEvaluator(ConversationalEvaluator):
    """Score web search usage.

    Without searches the score is 0 when ``require_web_search`` is set and
    100 otherwise. With searches it is 40 plus up to 30 for queries, 20 for
    domains, 5 for sources consulted and 5 for sources cited.
    """

    key = "web_search"
    name = "Web Search"
    description = "Verifies web search usage, queries, domains and sources"
    DEFAULT_CONFIG: ClassVar[dict[str, Any]] = {
        "require_web_search": True,
        "expected_queries": [],
        "require_all_queries": False,
        "expected_domains": [],
        "require_all_domains": False,
        "min_sources_consulted": 0,
        "min_sources_cited": 0,
        "threshold_score": 80,
    }
    PARAM_SCHEMA: ClassVar[dict[str, ParamType]] = {
        "require_web_search": ParamType.BOOLEAN,
        "expected_queries": ParamType.ARRAY,
        "require_all_queries": ParamType.BOOLEAN,
        "expected_domains": ParamType.ARRAY,
        "require_all_domains": ParamType.BOOLEAN,
        "min_sources_consulted": ParamType.INTEGER,
        "min_sources_cited": ParamType.INTEGER,
        "threshold_score": ParamType.INTEGER,
    }

    def _string_list(self, key: str) -> list[str]:
        return [str(v).strip() for v in self.config.get(key) or [] if str(v).strip()]

    @property
    def expected_queries(self) -> list[str]:
        return self._string_list("expected_queries")

    @property
    def expected_domains(self) -> list[str]:
        return self._string_list("expected_domains")

    @property
    def min_sources_consulted(self) -> int:
        return int(self.config.get("min_sources_consulted") or 0)

    @property
    def min_sources_cited(self) -> int:
        return int(self.config.get("min_sources_cited") or 0)

    @cached_property
    def queries(self) -> list[str]:
        """Unique queries across all searches."""
        seen: list[str] = []
        for search in self.web_search_results:
            if search.query and search.query not in seen:
                seen.append(search.query)
        return seen

    @cached_property
    def sources_consulted(self) -> list[WebSearchSource | Citation]:
        return unique_by_url(s for ws in self.web_search_results for s in ws.sources)

    @cached_property
    def sources_cited(self) -> list[WebSearchSource | Citation]:
        return unique_by_url(c for ws in self.web_search_results for c in ws.citations)

    @cached_property
    def matched_queries(self) -> list[str]:
        return [
            expected
            for expected in self.expected_queries
            if any(expected.lower() in query.lower() for query in self.queries)
        ]

    @cached_property
    def matched_domains(self) -> list[str]:
        domains: list[str] = []
        for entry in [*self.sources_consulted, *self.sources_cited]:
            domain = extract_domain(entry.url)
            if domain and domain not in domains:
                domains.append(domain)
        return [
            expected
            for expected in self.expected_domains
            if any(expected.lower() in domain.lower() for domain in domains)
        ]

    def evaluate_score(self) -> float:
        if not self.web_search_results:
            return 0.0 if self.config["require_web_search"] else 100.0

        query_score = _ratio_score(
            len(self.matched_queries),
            len(self.expected_queries),
            bool(self.config["require_all_queries"]),
        )
        domain_score = _ratio_score(
            len(self.matched_domains),
            len(self.expected_domains),
            bool(self.config["require_all_domains"]),
        )
        consulted_score = _minimum_score(
            len(self.sources_consulted), self.min_sources_consulted
        )
        cited_score = _minimum_score(len(self.sources_cited), self.min_sources_cited)

        total = (
            BASE_SCORE
            + query_score * QUERY_WEIGHT / 100
            + domain_score * DOMAIN_WEIGHT / 100
            + consulted_score * CONSULTED_WEIGHT / 100
            + cited_score * CITED_WEIGHT / 100
        )
        return round(total, 2)

    def generate_feedback(self) -> str:
        if not self.web_search_results:
            if self.config["require_web_search"]:
                return "✗ Web search was not used."
            return "Web search was not used (not required)."

        parts = [
            "Web Search Evaluation Results:",
            f"Searches performed: {len(self.web_search_results)}",
            f"Queries: {', '.join(self.queries) or 'None detected'}",
            f"Sources consulted: {len(self.sources_consulted)} (URLs researched)",
            f"Sources cited: {len(self.sources_cited)} (URLs referenced in response)",
        ]
        if self.expected_queries:
            matched = ", ".join(self.matched_queries) or "None"
            parts.append(f"Expected queries: {', '.join(self.expected_queries)}")
            parts.append(f"Matched queries: {matched}")
        if self.expected_domains:
            matched = ", ".join(self.matched_domains) or "None"
            parts.append(f"Expected domains: {', '.join(self.expected_domains)}")
            parts.append(f"Matched domains: {matched}")
        if self.min_sources_consulted > 0:
            parts.append(
                f"Min sources consulted required: {self.min_sources_consulted}"
            )
        if self.min_sources_cited > 0:
            parts.append(f"Min sources cited required: {self.min_sources_cited}")
        if self.passed():
            parts.append("✓ Web search requirements met.")
        else:
            parts.append("✗ Some requirements not met.")
        return "\n".join(parts)

    def metadata(self) -> dict[str, Any]:
        return {
            **super().metadata(),
            "web_search_count": len(self.web_search_results),
            "queries": self.queries,
            "sources_consulted": len(self.sources_consulted),
            "sources_consulted_list": [s.model_dump() for s in self.sources_consulted],
            "sources_cited": len(self.sources_cited),
            "sources_cited_list": [c.model_dump() for c in self.sources_cited],
            "matched_queries": self.matched_queries,
            "matched_domains": self.matched_domains,
            "expected_queries": self.expected_queries,
            "expected_domains": self.expected_domains,
        }
