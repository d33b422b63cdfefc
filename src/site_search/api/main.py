"""FastAPI entrypoint for search, web search and tool registry endpoints."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response

from site_search.accounts.auth import SessionStore
from site_search.accounts.quota import QuotaGate
from site_search.accounts.wallet import InMemoryWallet
from site_search.config import Settings, load_settings
from site_search.index.local import Index, InMemoryIndex
from site_search.obs.log import configure_logging
from site_search.obs.recorder import APICallRecorder
from site_search.search.client import ExternalSearchClient
from site_search.search.orchestrator import (
    Gate,
    Outcome,
    SearchOrchestrator,
    SearchOutcome,
    WebSearcher,
    render_local,
    render_web,
)
from site_search.tools.builtin import register_builtin_tools
from site_search.tools.handler import handle_tools, wants_json
from site_search.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

_ERROR_STATUS = {
    Outcome.BAD_REQUEST: 400,
    Outcome.UNAUTHORIZED: 401,
}


def create_app(
    *,
    settings: Settings | None = None,
    index: Index | None = None,
    sessions: SessionStore | None = None,
    wallet: InMemoryWallet | None = None,
    quota_gate: Gate | None = None,
    client: WebSearcher | None = None,
    registry: ToolRegistry | None = None,
    recorder: APICallRecorder | None = None,
) -> FastAPI:
    """Wire collaborators into a FastAPI application.

    Every collaborator can be injected; anything omitted gets an in-memory
    default built from `settings`. An injected `wallet` keeps its own free
    daily allowance; `settings.quota.free_daily_searches` only applies to the
    default wallet.
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    index = index if index is not None else InMemoryIndex()
    sessions = sessions if sessions is not None else SessionStore()
    recorder = recorder if recorder is not None else APICallRecorder()
    if quota_gate is None:
        if wallet is None:
            wallet = InMemoryWallet(free_daily_searches=settings.quota.free_daily_searches)
        quota_gate = QuotaGate(wallet, sessions, settings.quota)
    if client is None:
        client = ExternalSearchClient(settings.provider, recorder=recorder)
    if registry is None:
        registry = ToolRegistry()
        register_builtin_tools(registry, index, config=settings.search)

    orchestrator = SearchOrchestrator(
        index=index,
        auth=sessions,
        quota_gate=quota_gate,
        client=client,
        config=settings.search,
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        logger.info("search service starting up")
        yield
        if isinstance(client, ExternalSearchClient):
            client.close()
        logger.info("search service shutting down")

    app = FastAPI(title="Site Search", version="0.1.0", lifespan=lifespan)
    app.state.orchestrator = orchestrator
    app.state.registry = registry
    app.state.recorder = recorder

    @app.get("/health")
    def health() -> dict[str, Any]:
        configured = True
        if isinstance(client, ExternalSearchClient):
            configured = client.credential() is not None
        return {
            "status": "ok",
            "provider": settings.provider.name,
            "provider_configured": configured,
            "api_calls_recorded": len(recorder),
        }

    @app.get("/search")
    def search(request: Request, q: str = "") -> Response:
        outcome = orchestrator.local_search(q)
        if outcome.kind in _ERROR_STATUS:
            return _error(request, outcome)
        return HTMLResponse(render_local(outcome, snippet_length=settings.search.snippet_length))

    @app.get("/web")
    def web(request: Request, q: str = "") -> Response:
        outcome = orchestrator.web_search(q, request)
        if outcome.kind in _ERROR_STATUS:
            return _error(request, outcome)
        return HTMLResponse(render_web(outcome))

    @app.get("/tools")
    def tools(request: Request) -> Response:
        return handle_tools(request, registry)

    @app.get("/tools/{name}")
    def tool(request: Request, name: str) -> Response:
        return handle_tools(request, registry, name)

    @app.get("/api-log")
    def api_log(request: Request, limit: int = 20) -> Response:
        session = sessions.session_for(request)
        if session is None:
            return JSONResponse({"error": "Authentication required"}, status_code=401)
        if not session.account.admin:
            logger.warning("non-admin account %s requested the API log", session.account.id)
            return JSONResponse({"error": "Forbidden"}, status_code=403)
        return JSONResponse(
            {
                "items": [asdict(record) for record in recorder.recent(limit=limit)],
                "summary": recorder.summary(),
            }
        )

    return app


def _error(request: Request, outcome: SearchOutcome) -> Response:
    status = _ERROR_STATUS[outcome.kind]
    if wants_json(request):
        return JSONResponse({"error": outcome.message}, status_code=status)
    return PlainTextResponse(outcome.message, status_code=status)


app = create_app()
