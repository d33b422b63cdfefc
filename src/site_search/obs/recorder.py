"""Outbound API call recording and timing."""

from __future__ import annotations

import threading
import time
from collections import deque
from datetime import datetime, timezone

from site_search.types import CallRecord


class APICallRecorder:
    """Bounded in-memory log of outbound API calls.

    When more than `max_entries` calls have been recorded the oldest entry
    is dropped.
    """

    def __init__(self, *, max_entries: int = 200) -> None:
        self._records: deque[CallRecord] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def record(
        self,
        *,
        provider: str,
        method: str,
        url: str,
        status: int,
        duration_ms: float,
        error: Exception | str | None = None,
        request_body: str = "",
        response_body: str = "",
    ) -> CallRecord:
        entry = CallRecord(
            timestamp_utc=datetime.now(timezone.utc).isoformat(),
            provider=provider,
            method=method,
            url=url,
            status=status,
            duration_ms=duration_ms,
            error=str(error) if error is not None else None,
            request_body=request_body,
            response_body=response_body,
        )
        with self._lock:
            self._records.append(entry)
        return entry

    def recent(self, limit: int = 20) -> list[CallRecord]:
        """Return up to `limit` records, newest first."""
        with self._lock:
            records = list(self._records)
        records.reverse()
        return records[: max(0, limit)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def summary(self) -> dict[str, float | int]:
        with self._lock:
            records = list(self._records)
        total = len(records)
        if total == 0:
            return {
                "total_calls": 0,
                "error_count": 0,
                "avg_duration_ms": 0.0,
                "p95_duration_ms": 0.0,
            }

        durations = sorted(record.duration_ms for record in records)
        p95_index = max(0, int((len(durations) * 0.95) - 1))
        return {
            "total_calls": total,
            "error_count": sum(1 for record in records if record.error),
            "avg_duration_ms": sum(durations) / total,
            "p95_duration_ms": durations[p95_index],
        }


class Timer:
    """Simple context timer used around network calls."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0


def clip(text: str, limit: int) -> str:
    """Clip recorded payloads to `limit` characters."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
