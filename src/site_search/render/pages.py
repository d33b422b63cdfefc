"""HTML fragments and page shell for search and tool pages.

All user- and provider-supplied text passes through `esc` before it is
embedded in markup.
"""

from __future__ import annotations

import html
from collections.abc import Iterable
from datetime import datetime, timezone
from urllib.parse import quote_plus

from site_search.types import ExternalResult, LocalResult

ELLIPSIS = "…"

_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{title}</title>
<meta name="description" content="{description}">
</head>
<body>
<main>
<h1>{title}</h1>
{body}
</main>
</body>
</html>
"""


def esc(value: object) -> str:
    return html.escape(str(value), quote=True)


def render_page(title: str, description: str, body: str) -> str:
    """Wrap an already-escaped body fragment in the site page shell."""
    return _PAGE.format(title=esc(title), description=esc(description), body=body)


def truncate(text: str, limit: int) -> str:
    """Shorten to at most `limit` code points, marking the cut with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[:limit] + ELLIPSIS


def time_ago(moment: datetime, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    seconds = int((now - moment).total_seconds())
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    if seconds < 365 * 86400:
        return f"{seconds // 86400}d ago"
    return f"{moment.day} {moment:%b %Y}"


def entry_link(entry: LocalResult) -> str:
    """Destination for a local result, chosen by its category."""
    if entry.type == "news":
        return "/news?id=" + quote_plus(entry.id)
    if entry.type == "video":
        url = entry.metadata.get("url")
        if isinstance(url, str) and url:
            return url
        return "/video"
    if entry.type == "blog":
        return "/post?id=" + quote_plus(entry.id)
    return "/" + entry.type


def search_bar(query: str, *, action: str, placeholder: str) -> str:
    return (
        f'<form class="search-bar" action="{esc(action)}" method="GET">'
        f'<input type="text" name="q" placeholder="{esc(placeholder)}" '
        f'value="{esc(query)}" autofocus>'
        '<button type="submit">Search</button>'
        "</form>"
    )


def empty_state(message: str) -> str:
    return f'<p class="empty">{esc(message)}</p>'


def local_results(
    entries: Iterable[LocalResult],
    *,
    snippet_length: int = 160,
    now: datetime | None = None,
) -> str:
    parts: list[str] = []
    for entry in entries:
        parts.append('<div class="card">')
        parts.append(
            f'<div><a href="{esc(entry_link(entry))}" class="card-title">{esc(entry.title)}</a>'
            f' <span class="category">{esc(entry.type)}</span>'
        )
        if entry.indexed_at is not None:
            parts.append(f' <span class="age">{esc(time_ago(entry.indexed_at, now))}</span>')
        parts.append("</div>")
        if entry.content:
            snippet = truncate(entry.content, snippet_length)
            parts.append(f'<p class="card-desc">{esc(snippet)}</p>')
        parts.append("</div>")
    return "".join(parts)


def web_results(results: Iterable[ExternalResult]) -> str:
    parts: list[str] = []
    for result in results:
        parts.append('<div class="card">')
        parts.append(
            f'<div><a href="{esc(result.url)}" class="card-title" target="_blank" '
            f'rel="noopener noreferrer">{esc(result.title)}</a></div>'
        )
        if result.description:
            parts.append(f'<p class="card-desc">{esc(result.description)}</p>')
        meta = esc(result.url)
        if result.age:
            meta += f" · {esc(result.age)}"
        parts.append(f'<div class="card-meta">{meta}</div>')
        parts.append("</div>")
    return "".join(parts)


def quota_exceeded(cost: int) -> str:
    plural = "" if cost == 1 else "s"
    return (
        '<div class="card quota-exceeded">'
        "<h2>Daily Limit Reached</h2>"
        "<p>You've used your free queries for today.</p>"
        "<h3>Options</h3>"
        '<ul class="options-list">'
        "<li>Wait until midnight UTC for more free queries</li>"
        f'<li><a href="/wallet">Use credits</a> ({cost} credit{plural} for this)</li>'
        '<li><a href="/wallet/topup">Add credits</a></li>'
        "</ul>"
        "</div>"
    )


def not_found_page(message: str) -> str:
    return render_page("Not Found", message, f'<p class="empty">{esc(message)}</p>')
