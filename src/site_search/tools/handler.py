"""Content-negotiated views of the tool registry.

One data path (`tool_listing` / `tool_detail`) feeds both the JSON and the
HTML renderers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import Request
from fastapi.responses import HTMLResponse, JSONResponse, Response

from site_search.render.pages import esc, not_found_page, render_page
from site_search.tools.registry import ToolRegistry

TOOL_NOT_FOUND = "tool not found"


@dataclass(slots=True)
class ToolListing:
    tools: list[dict[str, Any]]
    categories: list[tuple[str, list[dict[str, Any]]]]

    @property
    def count(self) -> int:
        return len(self.tools)


def wants_json(request: Request) -> bool:
    return "application/json" in request.headers.get("accept", "")


def tool_listing(registry: ToolRegistry) -> ToolListing:
    tools = [spec.view() for spec in registry.list()]
    grouped: list[tuple[str, list[dict[str, Any]]]] = []
    for category in registry.categories():
        members = [tool for tool in tools if tool["category"] == category]
        if members:
            grouped.append((category, members))
    return ToolListing(tools=tools, categories=grouped)


def tool_detail(registry: ToolRegistry, name: str) -> dict[str, Any] | None:
    spec = registry.get(name)
    return spec.view() if spec is not None else None


def handle_tools(request: Request, registry: ToolRegistry, name: str = "") -> Response:
    """Serve `/tools` and `/tools/<name>` as JSON or HTML."""
    as_json = wants_json(request)

    if not name:
        listing = tool_listing(registry)
        if as_json:
            return JSONResponse({"tools": listing.tools, "count": listing.count})
        return HTMLResponse(render_listing_html(listing))

    tool = tool_detail(registry, name)
    if tool is None:
        if as_json:
            return JSONResponse({"error": TOOL_NOT_FOUND}, status_code=404)
        return HTMLResponse(not_found_page("Tool not found"), status_code=404)
    if as_json:
        return JSONResponse(tool)
    return HTMLResponse(render_detail_html(tool))


def render_listing_html(listing: ToolListing) -> str:
    parts = ['<p class="text-muted">Tools available for the agent to invoke.</p>']
    for category, tools in listing.categories:
        parts.append(f"<h3>{esc(category)}</h3>")
        parts.append('<div class="card-list">')
        for tool in tools:
            parts.append('<div class="card">')
            parts.append(
                f'<div class="card-title"><a href="/tools/{esc(tool["name"])}">'
                f'{esc(tool["name"])}</a></div>'
            )
            parts.append(f'<div class="card-desc">{esc(tool["description"])}</div>')
            if tool["input"]:
                parts.append('<ul class="card-meta params">')
                for param_name, param in tool["input"].items():
                    marker = "*" if param["required"] else ""
                    parts.append(
                        f"<li><code>{esc(param_name)}{marker}</code> ({esc(param['type'])})"
                        f" {esc(param['description'])}</li>"
                    )
                parts.append("</ul>")
            parts.append("</div>")
        parts.append("</div>")

    parts.append(
        f'<p class="text-muted">{listing.count} tools across '
        f"{len(listing.categories)} categories</p>"
    )
    return render_page("Tools", "Agent tools registry", "".join(parts))


def render_detail_html(tool: dict[str, Any]) -> str:
    parts = [
        f'<p class="text-muted">Category: {esc(tool["category"])}</p>',
        f"<p>{esc(tool['description'])}</p>",
    ]
    if tool["input"]:
        parts.append("<h3>Parameters</h3>")
        parts.append(
            '<table class="data-table"><thead><tr><th>Name</th><th>Type</th>'
            "<th>Required</th><th>Description</th></tr></thead><tbody>"
        )
        for param_name, param in tool["input"].items():
            required = "yes" if param["required"] else "no"
            parts.append(
                f"<tr><td><code>{esc(param_name)}</code></td><td>{esc(param['type'])}</td>"
                f"<td>{required}</td><td>{esc(param['description'])}</td></tr>"
            )
        parts.append("</tbody></table>")
    else:
        parts.append('<p class="text-muted">No parameters</p>')
    parts.append('<p><a href="/tools">← Back to tools</a></p>')
    return render_page(tool["name"], tool["description"], "".join(parts))
