import json

import pytest
from pydantic import BaseModel, Field, ValidationError

from site_search.index.local import InMemoryIndex
from site_search.tools.builtin import register_builtin_tools
from site_search.tools.registry import ToolRegistry, ToolSpec
from site_search.types import LocalResult


class EchoInput(BaseModel):
    value: int = Field(ge=1, description="Positive number")
    label: str | None = Field(default=None, description="Optional label")


def _echo_spec(name: str = "echo", category: str = "demo") -> ToolSpec:
    def _handler(data: EchoInput) -> str:
        return str(data.value)

    return ToolSpec(
        name=name,
        description="echo positive int",
        category=category,
        args_schema=EchoInput,
        handler=_handler,
    )


def test_tool_registry_validation() -> None:
    registry = ToolRegistry()
    registry.register(_echo_spec())

    assert registry.execute("echo", {"value": 3}) == "3"

    with pytest.raises(ValidationError):
        registry.execute("echo", {"value": 0})
    with pytest.raises(KeyError):
        registry.execute("missing", {})


def test_duplicate_tool_registration_rejected() -> None:
    registry = ToolRegistry()
    spec = _echo_spec()

    registry.register(spec)
    with pytest.raises(ValueError):
        registry.register(spec)


def test_params_are_derived_from_args_schema() -> None:
    params = _echo_spec().params()

    assert set(params) == {"value", "label"}
    assert params["value"].required is True
    assert params["value"].type == "number"
    assert params["value"].description == "Positive number"
    assert params["label"].required is False
    assert params["label"].type == "string"


def test_listing_is_sorted_and_grouped() -> None:
    registry = ToolRegistry()
    registry.register(_echo_spec("zeta", "b"))
    registry.register(_echo_spec("alpha", "b"))
    registry.register(_echo_spec("mid", "a"))
    registry.register(_echo_spec("loose", ""))

    assert [spec.name for spec in registry.list()] == ["alpha", "loose", "mid", "zeta"]
    assert registry.categories() == ["a", "b"]
    assert [spec.name for spec in registry.by_category("b")] == ["alpha", "zeta"]
    assert registry.by_category("nope") == []
    assert registry.get("missing") is None


def test_langchain_export_runs_through_registry() -> None:
    registry = ToolRegistry()
    registry.register(_echo_spec())
    observed = []
    registry.set_observer(observed.append)

    tools = registry.as_langchain_tools()

    assert [tool.name for tool in tools] == ["echo"]
    assert tools[0].invoke({"value": 7}) == "7"
    assert observed[0].name == "echo"


def test_builtin_tools() -> None:
    index = InMemoryIndex()
    index.add(LocalResult(id="n1", type="news", title="Rates rise again", content="Bank of England"))
    registry = ToolRegistry()
    register_builtin_tools(registry, index)

    listed = json.loads(registry.execute("tools.list", {}))
    assert listed["count"] == 1
    assert listed["tools"][0]["name"] == "search.local"

    assert registry.execute("search.local", {"query": "rates"}) == "[news] Rates rise again /news?id=n1"
    assert registry.execute("search.local", {"query": "rates", "type": "video"}) == "NO_RESULTS"
    assert registry.categories() == ["search", "system"]


def test_observer_sees_local_search_calls() -> None:
    index = InMemoryIndex()
    index.add(LocalResult(id="v9", type="video", title="Cooking basics", metadata={"url": "https://v.test/9"}))
    registry = ToolRegistry()
    register_builtin_tools(registry, index)
    observed = []
    registry.set_observer(observed.append)

    output = registry.execute("search.local", {"query": "cooking", "limit": 3})
    registry.set_observer(None)
    registry.execute("search.local", {"query": "cooking"})

    assert output == "[video] Cooking basics https://v.test/9"
    assert len(observed) == 1
    assert observed[0].name == "search.local"
    assert observed[0].input_payload == {"query": "cooking", "limit": 3}
    assert observed[0].output_preview == output
    assert observed[0].latency_ms >= 0.0


def test_observer_preview_is_clipped() -> None:
    index = InMemoryIndex()
    for n in range(10):
        index.add(LocalResult(id=f"n{n}", type="news", title=f"Election night update number {n}"))
    registry = ToolRegistry()
    register_builtin_tools(registry, index)
    observed = []
    registry.set_observer(observed.append)

    output = registry.execute("search.local", {"query": "election"})

    assert len(output) > 320
    assert observed[0].output_preview == output[:320]
