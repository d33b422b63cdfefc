"""Credit balances, spend history and free daily allowance."""

from __future__ import annotations

import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

TX_TOPUP = "topup"
TX_SPEND = "spend"


class WalletError(Exception):
    """Base class for wallet failures."""


class AccountNotFoundError(WalletError):
    pass


class InsufficientCreditsError(WalletError):
    pass


@dataclass(slots=True)
class Transaction:
    id: str
    account_id: str
    type: str
    amount: int
    balance: int
    operation: str
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: str = ""


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


class InMemoryWallet:
    """Per-account credit ledger (1 credit = 1 penny).

    The wallet serialises its own mutations; callers that need an atomic
    check-and-spend should use `deduct`, which refuses to overdraw.
    """

    def __init__(
        self,
        *,
        free_daily_searches: int = 10,
        today: Callable[[], date] | None = None,
    ) -> None:
        self.free_daily_searches = free_daily_searches
        self._today = today or _utc_today
        self._balances: dict[str, int] = {}
        self._transactions: dict[str, list[Transaction]] = {}
        self._daily_usage: dict[tuple[str, date], int] = {}
        self._lock = threading.Lock()

    def balance(self, account_id: str) -> int:
        with self._lock:
            return self._balances.get(account_id, 0)

    def add_credits(self, account_id: str, amount: int, operation: str = TX_TOPUP) -> int:
        if amount <= 0:
            raise ValueError("amount must be positive")
        with self._lock:
            balance = self._balances.get(account_id, 0) + amount
            self._balances[account_id] = balance
            self._append(account_id, TX_TOPUP, amount, balance, operation, None)
        return balance

    def deduct(
        self,
        account_id: str,
        amount: int,
        operation: str,
        metadata: dict[str, Any] | None = None,
    ) -> int:
        with self._lock:
            current = self._balances.get(account_id, 0)
            if current < amount:
                raise InsufficientCreditsError(
                    f"insufficient credits: balance {current}, need {amount}"
                )
            balance = current - amount
            self._balances[account_id] = balance
            self._append(account_id, TX_SPEND, -amount, balance, operation, metadata)
        return balance

    def transactions(self, account_id: str, limit: int = 20) -> list[Transaction]:
        """Return the most recent transactions, newest first."""
        with self._lock:
            history = list(self._transactions.get(account_id, []))
        history.reverse()
        return history[:limit]

    def free_searches_remaining(self, account_id: str) -> int:
        with self._lock:
            used = self._daily_usage.get((account_id, self._today()), 0)
        return max(0, self.free_daily_searches - used)

    def use_free_search(self, account_id: str) -> int:
        key = (account_id, self._today())
        with self._lock:
            used = self._daily_usage.get(key, 0)
            if used >= self.free_daily_searches:
                raise WalletError("daily free searches exhausted")
            self._daily_usage[key] = used + 1
        return self.free_daily_searches - used - 1

    def _append(
        self,
        account_id: str,
        tx_type: str,
        amount: int,
        balance: int,
        operation: str,
        metadata: dict[str, Any] | None,
    ) -> None:
        self._transactions.setdefault(account_id, []).append(
            Transaction(
                id=str(uuid.uuid4()),
                account_id=account_id,
                type=tx_type,
                amount=amount,
                balance=balance,
                operation=operation,
                metadata=dict(metadata or {}),
                created_at=datetime.now(timezone.utc).isoformat(),
            )
        )


def format_credits(credits: int) -> str:
    sign = "-" if credits < 0 else ""
    pounds, pence = divmod(abs(credits), 100)
    return f"{sign}£{pounds}.{pence:02d}"
