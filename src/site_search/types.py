"""Shared request-scoped value objects."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(slots=True, frozen=True)
class LocalResult:
    """A read-only projection of a local index entry."""

    id: str
    type: str
    title: str
    content: str = ""
    indexed_at: datetime | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class ExternalResult:
    """A single web result as supplied by the provider.

    Missing provider fields are represented by empty strings.
    """

    title: str = ""
    url: str = ""
    description: str = ""
    age: str = ""


@dataclass(slots=True, frozen=True)
class QuotaDecision:
    allowed: bool
    remaining: int
    cost: int
    reason: str | None = None


@dataclass(slots=True, frozen=True)
class CallRecord:
    """Observability record for one outbound API call.

    `status` is 0 when the call never reached the network.
    """

    timestamp_utc: str
    provider: str
    method: str
    url: str
    status: int
    duration_ms: float
    error: str | None = None
    request_body: str = ""
    response_body: str = ""


@dataclass(slots=True)
class ToolTrace:
    """Trace record for an executed tool call."""

    name: str
    input_payload: dict[str, Any]
    output_preview: str
    latency_ms: float
