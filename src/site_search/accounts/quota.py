"""Quota gate: decide before a metered call, charge after it succeeds."""

from __future__ import annotations

import logging
from typing import Protocol

from site_search.accounts.auth import Account
from site_search.accounts.wallet import AccountNotFoundError, InMemoryWallet
from site_search.config import QuotaConfig
from site_search.types import QuotaDecision

logger = logging.getLogger(__name__)


class AccountLookup(Protocol):
    def get_account(self, account_id: str) -> Account | None:
        """Return the account or None when unknown."""


class QuotaGate:
    """Answers "may this account run operation X now" and charges for it.

    `check` and `consume` are separate steps and are not atomic together:
    two concurrent requests may both be allowed before either consumes.
    The wallet refuses to overdraw, so the late `consume` fails instead.
    """

    def __init__(
        self,
        wallet: InMemoryWallet,
        accounts: AccountLookup,
        config: QuotaConfig | None = None,
    ) -> None:
        self.wallet = wallet
        self.accounts = accounts
        self.config = config or QuotaConfig()

    def cost(self, operation: str) -> int:
        return self.config.cost_for(operation)

    def check(self, account_id: str, operation: str) -> QuotaDecision:
        account = self.accounts.get_account(account_id)
        if account is None:
            return QuotaDecision(
                allowed=False, remaining=0, cost=self.cost(operation), reason="account not found"
            )

        balance = self.wallet.balance(account_id)
        if account.member or account.admin:
            return QuotaDecision(allowed=True, remaining=balance, cost=0, reason="unlimited")

        free = self.wallet.free_searches_remaining(account_id)
        if free > 0:
            return QuotaDecision(allowed=True, remaining=free, cost=0, reason="free daily search")

        cost = self.cost(operation)
        if balance >= cost:
            return QuotaDecision(allowed=True, remaining=balance, cost=cost)
        return QuotaDecision(
            allowed=False, remaining=balance, cost=cost, reason="insufficient credits"
        )

    def consume(self, account_id: str, operation: str) -> None:
        """Charge one unit of `operation`; call only after it succeeded."""
        account = self.accounts.get_account(account_id)
        if account is None:
            raise AccountNotFoundError(f"account not found: {account_id}")
        if account.member or account.admin:
            return

        if self.wallet.free_searches_remaining(account_id) > 0:
            self.wallet.use_free_search(account_id)
            logger.info("account %s used a free %s", account_id, operation)
            return

        balance = self.wallet.deduct(account_id, self.cost(operation), operation)
        logger.info("account %s charged for %s, balance now %d", account_id, operation, balance)
