"""Accounts and session lookup."""

from __future__ import annotations

import secrets
import threading
from dataclasses import dataclass
from typing import Any

SESSION_COOKIE = "session"


@dataclass(slots=True, frozen=True)
class Account:
    id: str
    name: str = ""
    member: bool = False
    admin: bool = False


@dataclass(slots=True, frozen=True)
class Session:
    token: str
    account: Account


class SessionStore:
    """In-memory account and session registry.

    A request is authenticated by the `session` cookie or by an
    `Authorization: Bearer <token>` header.
    """

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self._sessions: dict[str, str] = {}
        self._lock = threading.Lock()

    def add_account(self, account: Account) -> None:
        with self._lock:
            self._accounts[account.id] = account

    def get_account(self, account_id: str) -> Account | None:
        with self._lock:
            return self._accounts.get(account_id)

    def create_session(self, account_id: str) -> Session:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None:
                raise KeyError(f"Account not found: {account_id}")
            token = secrets.token_urlsafe(32)
            self._sessions[token] = account_id
        return Session(token=token, account=account)

    def revoke(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)

    def resolve(self, token: str | None) -> Session | None:
        if not token:
            return None
        with self._lock:
            account_id = self._sessions.get(token)
            account = self._accounts.get(account_id) if account_id else None
        if account is None:
            return None
        return Session(token=token, account=account)

    def session_for(self, request: Any) -> Session | None:
        """Resolve the session carried by a Starlette-style request."""
        token = request.cookies.get(SESSION_COOKIE)
        if not token:
            authorization = request.headers.get("authorization", "")
            scheme, _, value = authorization.partition(" ")
            if scheme.lower() == "bearer":
                token = value.strip()
        return self.resolve(token)
