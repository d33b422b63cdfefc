"""Per-request control flow for local and metered web search."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

from site_search.accounts.auth import Session
from site_search.accounts.wallet import WalletError
from site_search.config import OP_WEB_SEARCH, SearchConfig
from site_search.index.local import Index
from site_search.render import pages
from site_search.search.client import ExternalSearchError, ProviderConfigError
from site_search.types import ExternalResult, LocalResult, QuotaDecision

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    EMPTY = "empty"
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    QUOTA_EXCEEDED = "quota_exceeded"
    UNAVAILABLE = "unavailable"
    NO_RESULTS = "no_results"
    RESULTS = "results"


@dataclass(slots=True)
class SearchOutcome:
    """Terminal state reached by one search request."""

    kind: Outcome
    query: str
    local_results: list[LocalResult] = field(default_factory=list)
    web_results: list[ExternalResult] = field(default_factory=list)
    decision: QuotaDecision | None = None
    message: str = ""


class SessionResolver(Protocol):
    def session_for(self, request: Any) -> Session | None:
        """Return the authenticated session or None."""


class Gate(Protocol):
    def check(self, account_id: str, operation: str) -> QuotaDecision:
        """Decide whether the operation may proceed."""

    def consume(self, account_id: str, operation: str) -> None:
        """Charge for an operation that already succeeded."""


class WebSearcher(Protocol):
    def search(self, query: str, limit: int = 10) -> list[ExternalResult]:
        """Run one provider search, raising `ExternalSearchError` on failure."""


class SearchOrchestrator:
    """Ties query validation, auth, quota and the provider client together.

    The metered path runs check -> call -> consume-on-success. Nothing is
    retried and no state is kept between requests.
    """

    def __init__(
        self,
        *,
        index: Index,
        auth: SessionResolver,
        quota_gate: Gate,
        client: WebSearcher,
        config: SearchConfig | None = None,
        operation: str = OP_WEB_SEARCH,
    ) -> None:
        self.index = index
        self.auth = auth
        self.quota_gate = quota_gate
        self.client = client
        self.config = config or SearchConfig()
        self.operation = operation

    def local_search(self, raw_query: str | None) -> SearchOutcome:
        query, rejected = self._validate(raw_query)
        if rejected is not None:
            return rejected

        results = list(self.index.search(query, self.config.local_limit))
        if not results:
            return SearchOutcome(kind=Outcome.NO_RESULTS, query=query)
        return SearchOutcome(kind=Outcome.RESULTS, query=query, local_results=results)

    def web_search(self, raw_query: str | None, request: Any) -> SearchOutcome:
        query, rejected = self._validate(raw_query)
        if rejected is not None:
            return rejected

        session = self.auth.session_for(request)
        if session is None:
            logger.info("unauthenticated web search rejected")
            return SearchOutcome(
                kind=Outcome.UNAUTHORIZED, query=query, message="Authentication required"
            )

        account_id = session.account.id
        decision = self.quota_gate.check(account_id, self.operation)
        if not decision.allowed:
            logger.info(
                "quota refused %s for account %s: %s", self.operation, account_id, decision.reason
            )
            return SearchOutcome(kind=Outcome.QUOTA_EXCEEDED, query=query, decision=decision)

        try:
            results = self.client.search(query, self.config.web_limit)
        except ProviderConfigError as exc:
            logger.error("web search provider misconfigured: %s", exc)
            return self._unavailable(query, decision)
        except ExternalSearchError as exc:
            logger.error("web search failed for account %s: %s", account_id, exc)
            return self._unavailable(query, decision)

        try:
            self.quota_gate.consume(account_id, self.operation)
        except WalletError as exc:
            # Allowed at check time but the balance moved before consume.
            logger.warning("could not charge account %s for %s: %s", account_id, self.operation, exc)

        if not results:
            return SearchOutcome(kind=Outcome.NO_RESULTS, query=query, decision=decision)
        return SearchOutcome(
            kind=Outcome.RESULTS, query=query, web_results=results, decision=decision
        )

    def _validate(self, raw_query: str | None) -> tuple[str, SearchOutcome | None]:
        query = (raw_query or "").strip()
        if not query:
            return query, SearchOutcome(kind=Outcome.EMPTY, query=query)
        if len(query) > self.config.max_query_length:
            return query, SearchOutcome(
                kind=Outcome.BAD_REQUEST,
                query=query,
                message=f"Search query must not exceed {self.config.max_query_length} characters",
            )
        return query, None

    @staticmethod
    def _unavailable(query: str, decision: QuotaDecision) -> SearchOutcome:
        return SearchOutcome(
            kind=Outcome.UNAVAILABLE,
            query=query,
            decision=decision,
            message="Web search unavailable.",
        )


def render_local(
    outcome: SearchOutcome,
    *,
    snippet_length: int = 160,
    now: datetime | None = None,
) -> str:
    """Render a local-search page; error outcomes are handled by the caller."""
    body = pages.search_bar(outcome.query, action="/search", placeholder="Search the site...")
    if outcome.kind is Outcome.EMPTY:
        body += pages.empty_state("Enter a query above to search.")
        return pages.render_page("Search", "Search", body)

    if outcome.kind is Outcome.NO_RESULTS:
        body += pages.empty_state("No results found.")
    else:
        body += pages.local_results(
            outcome.local_results, snippet_length=snippet_length, now=now
        )
    return pages.render_page(
        f"Search: {outcome.query}", f"Search results for {outcome.query}", body
    )


def render_web(outcome: SearchOutcome) -> str:
    """Render a web-search page; error outcomes are handled by the caller."""
    body = pages.search_bar(outcome.query, action="/web", placeholder="Search the web...")
    if outcome.kind is Outcome.EMPTY:
        body += pages.empty_state("Enter a query above to search the web.")
        return pages.render_page("Web", "Web search", body)

    if outcome.kind is Outcome.QUOTA_EXCEEDED:
        cost = outcome.decision.cost if outcome.decision is not None else 0
        body += pages.quota_exceeded(cost)
        return pages.render_page("Web", "Web search", body)

    if outcome.kind is Outcome.UNAVAILABLE:
        body += pages.empty_state("Web search unavailable.")
    elif outcome.kind is Outcome.NO_RESULTS:
        body += pages.empty_state("No web results found.")
    else:
        body += pages.web_results(outcome.web_results)
    return pages.render_page(
        f"Web: {outcome.query}", f"Web results for {outcome.query}", body
    )
