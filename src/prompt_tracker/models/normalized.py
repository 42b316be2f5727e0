"""Canonical shapes produced by the response normalizers.

Every provider response is reduced to one of two shapes before any evaluator
sees it:

- ``NormalizedSingleResponse`` for single-turn tests
- ``NormalizedConversation`` for conversational tests

Raw input handed to a normalizer is first coerced into the ``RawResponse``
union (``TextResponse`` | ``StructuredResponse`` | ``EmptyResponse``) so that
normalizers dispatch on an explicit type instead of probing values.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


def parse_arguments(value: Any) -> dict[str, Any]:
    """Parse tool-call arguments into a dictionary.

    Args:
        value: JSON text, an already-decoded mapping, or None

    Returns:
        Decoded arguments. Malformed JSON, non-object JSON and None all
        yield an empty dictionary.
    """
    if value is None:
        return {}
    if isinstance(value, dict):
        return dict(value)
    if isinstance(value, str):
        if not value.strip():
            return {}
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError:
            return {}
        return decoded if isinstance(decoded, dict) else {}
    return {}


# ---------------------------------------------------------------------------
# Raw response union
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextResponse:
    """Raw provider output that is plain text."""

    text: str


@dataclass(frozen=True)
class StructuredResponse:
    """Raw provider output that is a decoded JSON object."""

    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class EmptyResponse:
    """Missing raw provider output."""


RawResponse = TextResponse | StructuredResponse | EmptyResponse


def coerce_raw(value: Any) -> RawResponse:
    """Coerce an arbitrary raw value into the ``RawResponse`` union.

    Args:
        value: Value handed to a normalizer

    Returns:
        The matching ``RawResponse`` variant. Objects that are neither text
        nor mappings are stringified.
    """
    match value:
        case TextResponse() | StructuredResponse() | EmptyResponse():
            return value
        case None:
            return EmptyResponse()
        case str():
            return TextResponse(value)
        case dict():
            return StructuredResponse(value)
        case BaseModel():
            return StructuredResponse(value.model_dump())
        case _:
            return TextResponse(str(value))


# ---------------------------------------------------------------------------
# Normalized records
# ---------------------------------------------------------------------------


class ToolCall(BaseModel):
    """A function/tool invocation requested by the model."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = Field(None, description="Provider call identifier")
    type: str = Field("function", description="Tool call type")
    function_name: str | None = Field(None, description="Name of the called function")
    arguments: dict[str, Any] = Field(
        default_factory=dict, description="Decoded call arguments"
    )

    @field_validator("arguments", mode="before")
    @classmethod
    def decode_arguments(cls, value: Any) -> dict[str, Any]:
        """Decode JSON-encoded arguments, falling back to an empty mapping."""
        return parse_arguments(value)

    @field_validator("type", mode="before")
    @classmethod
    def default_type(cls, value: Any) -> str:
        """Treat a missing type as a function call."""
        return value or "function"


MessageRole = Literal["user", "assistant", "system", "tool"]


class Message(BaseModel):
    """One message of a normalized conversation."""

    model_config = ConfigDict(extra="ignore")

    role: MessageRole = Field(..., description="Canonical message role")
    content: str | None = Field(None, description="Plain text content")
    tool_calls: list[ToolCall] = Field(default_factory=list)
    turn: int = Field(1, ge=1, description="User turn this message belongs to")


class ToolUsage(BaseModel):
    """A tool call paired with its output when the provider exposes one."""

    model_config = ConfigDict(extra="ignore")

    function_name: str | None = None
    call_id: str | None = None
    arguments: dict[str, Any] = Field(default_factory=dict)
    result: Any | None = None

    @field_validator("arguments", mode="before")
    @classmethod
    def decode_arguments(cls, value: Any) -> dict[str, Any]:
        """Decode JSON-encoded arguments, falling back to an empty mapping."""
        return parse_arguments(value)


class FileSearchResult(BaseModel):
    """Files returned by one file-search tool call."""

    model_config = ConfigDict(extra="ignore")

    query: str | None = None
    files: list[str] = Field(default_factory=list)
    scores: list[float | None] = Field(
        default_factory=list, description="Relevance scores, same order as files"
    )


class WebSearchSource(BaseModel):
    """A page consulted during a web search."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    url: str | None = None
    snippet: str | None = None


class Citation(BaseModel):
    """A URL cited in the final response text."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    url: str | None = None
    start_index: int | None = None
    end_index: int | None = None


class WebSearchResult(BaseModel):
    """One web-search tool call.

    Providers may attach the full citation list of the response to every
    search call, so consumers must deduplicate sources and citations by URL
    when aggregating across calls.
    """

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    status: str | None = None
    query: str | None = None
    sources: list[WebSearchSource] = Field(default_factory=list)
    citations: list[Citation] = Field(default_factory=list)


class CodeInterpreterResult(BaseModel):
    """One code interpreter execution."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    status: str | None = None
    code: str | None = None
    language: str | None = None
    output: str | None = None
    files_created: list[Any] = Field(default_factory=list)
    error: str | None = None


class NormalizedSingleResponse(BaseModel):
    """Canonical single-turn response."""

    model_config = ConfigDict(extra="ignore")

    text: str = ""
    tool_calls: list[ToolCall] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class NormalizedConversation(BaseModel):
    """Canonical multi-turn conversation.

    A conversation holding a single message is a single-turn exchange
    represented uniformly as a conversation.
    """

    model_config = ConfigDict(extra="ignore")

    messages: list[Message] = Field(default_factory=list)
    tool_usage: list[ToolUsage] = Field(default_factory=list)
    file_search_results: list[FileSearchResult] = Field(default_factory=list)
    web_search_results: list[WebSearchResult] = Field(default_factory=list)
    code_interpreter_results: list[CodeInterpreterResult] = Field(
        default_factory=list
    )
    run_steps: list[dict[str, Any]] = Field(
        default_factory=list, description="Raw Assistants API run steps"
    )
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_single_turn(self) -> bool:
        """Whether the conversation holds exactly one message."""
        return len(self.messages) == 1
