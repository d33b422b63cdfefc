"""Built-in tools exposed through the registry."""

from __future__ import annotations

import json

from pydantic import BaseModel, Field

from site_search.config import SearchConfig
from site_search.index.local import Index
from site_search.render.pages import entry_link
from site_search.tools.registry import ToolRegistry, ToolSpec


class ListToolsInput(BaseModel):
    pass


class LocalSearchInput(BaseModel):
    query: str = Field(min_length=1, max_length=256, description="Search terms")
    limit: int = Field(default=10, ge=1, le=10, description="Maximum number of results")
    type: str | None = Field(default=None, description="Only return entries of this type")


def register_builtin_tools(
    registry: ToolRegistry,
    index: Index,
    *,
    config: SearchConfig | None = None,
) -> None:
    """Register the default tool set.

    Tools:
    - `tools.list`: names, descriptions and categories of the other tools.
    - `search.local`: free lookup against the local content index.
    """

    search_config = config or SearchConfig()

    def _list_tools(_: ListToolsInput) -> str:
        items = [
            {"name": spec.name, "description": spec.description, "category": spec.category}
            for spec in registry.list()
            if spec.name != "tools.list"
        ]
        return json.dumps({"tools": items, "count": len(items)})

    def _local_search(input_data: LocalSearchInput) -> str:
        limit = min(input_data.limit, search_config.local_limit)
        hits = index.search(input_data.query.strip(), limit)
        if input_data.type:
            hits = [hit for hit in hits if hit.type == input_data.type]
        if not hits:
            return "NO_RESULTS"
        return "\n".join(f"[{hit.type}] {hit.title} {entry_link(hit)}" for hit in hits)

    registry.register(
        ToolSpec(
            name="tools.list",
            description="List all available tools and their descriptions",
            category="system",
            args_schema=ListToolsInput,
            handler=_list_tools,
        )
    )
    registry.register(
        ToolSpec(
            name="search.local",
            description="Search the site's local content index",
            category="search",
            args_schema=LocalSearchInput,
            handler=_local_search,
            tags=["search"],
        )
    )
