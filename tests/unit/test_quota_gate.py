from datetime import date

import pytest

from site_search.accounts.auth import Account, SessionStore
from site_search.accounts.quota import QuotaGate
from site_search.accounts.wallet import (
    AccountNotFoundError,
    InMemoryWallet,
    InsufficientCreditsError,
    WalletError,
    format_credits,
)
from site_search.config import OP_WEB_SEARCH, QuotaConfig


class Clock:
    def __init__(self) -> None:
        self.day = date(2026, 10, 16)

    def __call__(self) -> date:
        return self.day


def _setup(*, free: int = 0, balance: int = 0, **flags):
    sessions = SessionStore()
    sessions.add_account(Account(id="acct", **flags))
    clock = Clock()
    wallet = InMemoryWallet(free_daily_searches=free, today=clock)
    if balance:
        wallet.add_credits("acct", balance)
    gate = QuotaGate(wallet, sessions, QuotaConfig(free_daily_searches=free))
    return gate, wallet, clock


def test_unknown_account_is_refused() -> None:
    gate, _, _ = _setup()

    decision = gate.check("ghost", OP_WEB_SEARCH)

    assert decision.allowed is False
    assert decision.reason == "account not found"
    assert decision.cost == 5
    with pytest.raises(AccountNotFoundError):
        gate.consume("ghost", OP_WEB_SEARCH)


def test_members_and_admins_are_unlimited() -> None:
    for flags in ({"member": True}, {"admin": True}):
        gate, wallet, _ = _setup(**flags)

        decision = gate.check("acct", OP_WEB_SEARCH)
        gate.consume("acct", OP_WEB_SEARCH)

        assert decision.allowed is True
        assert decision.cost == 0
        assert wallet.transactions("acct") == []


def test_free_searches_are_used_before_credits_and_reset_daily() -> None:
    gate, wallet, clock = _setup(free=2, balance=10)

    assert gate.check("acct", OP_WEB_SEARCH).remaining == 2
    gate.consume("acct", OP_WEB_SEARCH)
    gate.consume("acct", OP_WEB_SEARCH)
    assert wallet.balance("acct") == 10

    decision = gate.check("acct", OP_WEB_SEARCH)
    assert decision.cost == 5
    assert decision.remaining == 10
    gate.consume("acct", OP_WEB_SEARCH)
    assert wallet.balance("acct") == 5

    clock.day = date(2026, 10, 17)
    assert wallet.free_searches_remaining("acct") == 2


def test_insufficient_balance_is_refused_with_cost() -> None:
    gate, _, _ = _setup(balance=3)

    decision = gate.check("acct", OP_WEB_SEARCH)

    assert decision.allowed is False
    assert decision.cost == 5
    assert decision.remaining == 3
    assert decision.reason == "insufficient credits"


def test_decisions_are_fresh_values() -> None:
    gate, _, _ = _setup(balance=20)

    first = gate.check("acct", OP_WEB_SEARCH)
    gate.consume("acct", OP_WEB_SEARCH)
    second = gate.check("acct", OP_WEB_SEARCH)

    assert first.remaining == 20
    assert second.remaining == 15
    with pytest.raises(AttributeError):
        first.allowed = False


def test_wallet_refuses_to_overdraw() -> None:
    wallet = InMemoryWallet(free_daily_searches=0)
    wallet.add_credits("acct", 4)

    with pytest.raises(InsufficientCreditsError):
        wallet.deduct("acct", 5, OP_WEB_SEARCH)
    assert wallet.balance("acct") == 4


def test_free_search_exhaustion_raises() -> None:
    wallet = InMemoryWallet(free_daily_searches=1)
    wallet.use_free_search("acct")

    with pytest.raises(WalletError):
        wallet.use_free_search("acct")


def test_unknown_operation_uses_default_cost() -> None:
    assert QuotaConfig().cost_for("something_else") == 1


def test_format_credits() -> None:
    assert format_credits(505) == "£5.05"
    assert format_credits(5) == "£0.05"
    assert format_credits(-120) == "-£1.20"
