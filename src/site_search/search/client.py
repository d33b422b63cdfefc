"""Metered web-search provider client."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from typing import Any
from urllib.parse import quote_plus

import httpx

from site_search.config import ProviderConfig
from site_search.obs.recorder import APICallRecorder, Timer, clip
from site_search.types import ExternalResult

logger = logging.getLogger(__name__)

MAX_RESULT_COUNT = 20


class ExternalSearchError(Exception):
    """Base class for every failure of an outbound search call."""

    status_code = 0


class ProviderConfigError(ExternalSearchError):
    """The provider credential is missing; the network was never reached."""


class ProviderRequestError(ExternalSearchError):
    """The outbound request could not be built from the query."""


class ProviderTransportError(ExternalSearchError):
    def __init__(self, message: str, *, timed_out: bool = False) -> None:
        super().__init__(message)
        self.timed_out = timed_out


class ProviderHTTPError(ExternalSearchError):
    def __init__(self, provider: str, status_code: int, body: str) -> None:
        super().__init__(f"{provider} search API error: {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class ProviderDecodeError(ExternalSearchError):
    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class ExternalSearchClient:
    """Issues single-attempt GET requests against the web-search provider.

    Every call to `search` produces exactly one `CallRecord`, whichever way
    it exits. The credential is resolved through `credential_source` on each
    call so it can change without restarting the process.
    """

    def __init__(
        self,
        config: ProviderConfig | None = None,
        *,
        recorder: APICallRecorder,
        credential_source: Callable[[], str | None] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config or ProviderConfig()
        self.recorder = recorder
        self._credential_source = credential_source or self._credential_from_env
        self._http = httpx.Client(timeout=self.config.timeout_seconds, transport=transport)

    def credential(self) -> str | None:
        return self._credential_source() or None

    def close(self) -> None:
        self._http.close()

    def build_url(self, query: str, limit: int) -> str:
        count = max(1, min(limit, MAX_RESULT_COUNT))
        return f"{self.config.endpoint}?q={quote_plus(query)}&count={count}"

    def search(self, query: str, limit: int = 10) -> list[ExternalResult]:
        try:
            url = self.build_url(query, limit)
        except UnicodeError as exc:
            error = ProviderRequestError(f"could not encode query for {self.config.name}: {exc}")
            self._record(self.config.endpoint, status=0, duration_ms=0.0, error=error)
            raise error from exc

        api_key = self.credential()
        if not api_key:
            error = ProviderConfigError(f"{self.config.api_key_env} not set")
            self._record(url, status=0, duration_ms=0.0, error=error)
            raise error

        headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip",
            "X-Subscription-Token": api_key,
        }

        timer = Timer()
        try:
            with timer:
                response = self._http.get(url, headers=headers)
        except httpx.TimeoutException as exc:
            error = ProviderTransportError(
                f"{self.config.name} request timed out: {exc}", timed_out=True
            )
            self._record(url, status=0, duration_ms=timer.elapsed_ms, error=error)
            raise error from exc
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            error = ProviderTransportError(f"{self.config.name} request failed: {exc}")
            self._record(url, status=0, duration_ms=timer.elapsed_ms, error=error)
            raise error from exc

        body = clip(response.text, self.config.max_record_body)
        if not response.is_success:
            error = ProviderHTTPError(self.config.name, response.status_code, body)
            self._record(
                url,
                status=response.status_code,
                duration_ms=timer.elapsed_ms,
                error=error,
                response_body=body,
            )
            raise error

        try:
            results = _parse_results(response.json(), limit)
        except (ValueError, TypeError) as exc:
            error = ProviderDecodeError(
                f"{self.config.name} returned a malformed response: {exc}",
                status_code=response.status_code,
            )
            self._record(
                url,
                status=response.status_code,
                duration_ms=timer.elapsed_ms,
                error=error,
                response_body=body,
            )
            raise error from exc

        self._record(
            url,
            status=response.status_code,
            duration_ms=timer.elapsed_ms,
            response_body=body,
        )
        logger.debug("%s returned %d results for %r", self.config.name, len(results), query)
        return results

    def _record(
        self,
        url: str,
        *,
        status: int,
        duration_ms: float,
        error: Exception | None = None,
        response_body: str = "",
    ) -> None:
        self.recorder.record(
            provider=self.config.name,
            method="GET",
            url=url,
            status=status,
            duration_ms=duration_ms,
            error=error,
            response_body=response_body,
        )

    def _credential_from_env(self) -> str | None:
        return os.getenv(self.config.api_key_env)


def _parse_results(data: Any, limit: int) -> list[ExternalResult]:
    if not isinstance(data, dict):
        raise TypeError(f"expected a JSON object, got {type(data).__name__}")

    web = data.get("web")
    if web is None:
        # The provider omits the section entirely when nothing matched.
        return []
    if not isinstance(web, dict):
        raise TypeError("'web' section is not an object")

    items = web.get("results") or []
    if not isinstance(items, list):
        raise TypeError("'web.results' is not a list")

    results: list[ExternalResult] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        results.append(
            ExternalResult(
                title=_text(item.get("title")),
                url=_text(item.get("url")),
                description=_text(item.get("description")),
                age=_text(item.get("age")),
            )
        )
    return results[: max(0, limit)]


def _text(value: Any) -> str:
    return str(value) if value else ""
