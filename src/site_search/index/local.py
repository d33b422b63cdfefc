"""Local content index contract and an in-memory implementation."""

from __future__ import annotations

import threading
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Protocol

from site_search.types import LocalResult

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class Index(Protocol):
    """Minimal local index contract used by the search orchestrator."""

    def search(self, query: str, limit: int) -> Sequence[LocalResult]:
        """Return up to `limit` entries ordered by relevance."""


class InMemoryIndex:
    """Deterministic lexical index used for tests and local prototyping."""

    def __init__(self, *, title_weight: float = 2.0) -> None:
        self.title_weight = title_weight
        self._entries: dict[str, LocalResult] = {}
        self._lock = threading.Lock()

    def add(self, entry: LocalResult) -> None:
        with self._lock:
            self._entries[entry.id] = entry

    def remove(self, entry_id: str) -> None:
        with self._lock:
            self._entries.pop(entry_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def search(self, query: str, limit: int) -> list[LocalResult]:
        query_tokens = set(query.lower().split())
        if not query_tokens or limit <= 0:
            return []
        with self._lock:
            entries = list(self._entries.values())

        scored: list[tuple[float, datetime, LocalResult]] = []
        for entry in entries:
            title_tokens = set(entry.title.lower().split())
            content_tokens = set(entry.content.lower().split())
            score = self.title_weight * len(query_tokens & title_tokens) + len(
                query_tokens & content_tokens
            )
            if score <= 0:
                continue
            scored.append((score, _aware(entry.indexed_at), entry))

        scored.sort(key=lambda item: (item[0], item[1]), reverse=True)
        return [entry for _, _, entry in scored[:limit]]


def _aware(moment: datetime | None) -> datetime:
    if moment is None:
        return _EPOCH
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment
