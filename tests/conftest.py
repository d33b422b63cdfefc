from dataclasses import dataclass, field
from typing import Any

import pytest

from site_search.accounts.auth import Account, Session
from site_search.types import ExternalResult, LocalResult, QuotaDecision


@dataclass
class FakeIndex:
    results: list[LocalResult] = field(default_factory=list)
    calls: list[tuple[str, int]] = field(default_factory=list)

    def search(self, query: str, limit: int) -> list[LocalResult]:
        self.calls.append((query, limit))
        return self.results[:limit]


@dataclass
class FakeAuth:
    session: Session | None = None
    calls: int = 0

    def session_for(self, request: Any) -> Session | None:
        self.calls += 1
        return self.session


@dataclass
class FakeGate:
    decision: QuotaDecision = field(
        default_factory=lambda: QuotaDecision(allowed=True, remaining=100, cost=5)
    )
    checks: int = 0
    consumed: int = 0

    def check(self, account_id: str, operation: str) -> QuotaDecision:
        self.checks += 1
        return self.decision

    def consume(self, account_id: str, operation: str) -> None:
        self.consumed += 1


@dataclass
class FakeClient:
    results: list[ExternalResult] = field(default_factory=list)
    error: Exception | None = None
    calls: list[tuple[str, int]] = field(default_factory=list)

    def search(self, query: str, limit: int = 10) -> list[ExternalResult]:
        self.calls.append((query, limit))
        if self.error is not None:
            raise self.error
        return self.results


@pytest.fixture()
def alice() -> Account:
    return Account(id="alice", name="Alice")


@pytest.fixture()
def alice_session(alice: Account) -> Session:
    return Session(token="tok-alice", account=alice)


@pytest.fixture()
def fake_index() -> FakeIndex:
    return FakeIndex()


@pytest.fixture()
def fake_auth() -> FakeAuth:
    return FakeAuth()


@pytest.fixture()
def fake_gate() -> FakeGate:
    return FakeGate()


@pytest.fixture()
def fake_client() -> FakeClient:
    return FakeClient()
