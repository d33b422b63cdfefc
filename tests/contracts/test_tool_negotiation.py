from fastapi.testclient import TestClient

from site_search.api.main import create_app
from site_search.config import Settings
from site_search.index.local import InMemoryIndex
from site_search.tools.builtin import register_builtin_tools
from site_search.tools.registry import ToolRegistry

JSON = {"Accept": "application/json"}


def _client() -> tuple[TestClient, ToolRegistry]:
    index = InMemoryIndex()
    registry = ToolRegistry()
    register_builtin_tools(registry, index)
    app = create_app(settings=Settings(), index=index, registry=registry)
    return TestClient(app), registry


def test_json_listing_count_matches_entries() -> None:
    client, registry = _client()

    payload = client.get("/tools", headers=JSON).json()

    assert payload["count"] == len(payload["tools"]) == len(registry.list())
    assert [tool["name"] for tool in payload["tools"]] == ["search.local", "tools.list"]


def test_missing_tool_shapes_differ_by_representation() -> None:
    client, _ = _client()

    json_resp = client.get("/tools/missing", headers=JSON)
    html_resp = client.get("/tools/missing")

    assert json_resp.status_code == 404
    assert json_resp.json() == {"error": "tool not found"}
    assert html_resp.status_code == 404
    assert html_resp.headers["content-type"].startswith("text/html")
    assert "Tool not found" in html_resp.text


def test_json_and_html_share_parameter_data() -> None:
    client, registry = _client()

    tool = client.get("/tools/search.local", headers=JSON).json()
    page = client.get("/tools/search.local").text

    assert tool == registry.get("search.local").view()
    assert tool["input"]["query"]["required"] is True
    assert tool["input"]["limit"]["required"] is False
    for name, param in tool["input"].items():
        required = "yes" if param["required"] else "no"
        assert f"<tr><td><code>{name}</code></td><td>{param['type']}</td><td>{required}</td>" in page


def test_html_listing_groups_by_category_with_summary() -> None:
    client, _ = _client()

    page = client.get("/tools").text

    assert page.index("<h3>search</h3>") < page.index("<h3>system</h3>")
    assert "<code>query*</code>" in page
    assert "<code>limit</code>" in page
    assert "2 tools across 2 categories" in page


def test_tool_without_parameters_says_so() -> None:
    client, _ = _client()

    page = client.get("/tools/tools.list").text

    assert "No parameters" in page
    assert client.get("/tools/tools.list", headers=JSON).json()["input"] == {}
