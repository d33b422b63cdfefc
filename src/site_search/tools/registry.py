"""Tool registry built on Pydantic v2 models."""

from __future__ import annotations

from collections.abc import Callable
from time import perf_counter
from typing import Any

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, ConfigDict, Field

from site_search.types import ToolTrace

_JSON_TYPES = {
    "string": "string",
    "integer": "number",
    "number": "number",
    "boolean": "bool",
    "array": "array",
    "object": "object",
}


class ToolParam(BaseModel):
    """Describes one input parameter of a tool."""

    type: str
    description: str = ""
    required: bool = False
    enum: list[str] | None = None


class ToolSpec(BaseModel):
    """Declarative tool specification for registration and validation.

    The parameter mapping shown to API and HTML callers is derived from
    `args_schema`, the same model used to validate invocations.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    description: str
    category: str = ""
    args_schema: type[BaseModel]
    handler: Callable[[BaseModel], str]
    tags: list[str] = Field(default_factory=list)

    def invoke(self, payload: dict[str, Any]) -> str:
        data = self.args_schema.model_validate(payload)
        return self.handler(data)

    def params(self) -> dict[str, ToolParam]:
        schema = self.args_schema.model_json_schema()
        required = set(schema.get("required", []))
        params: dict[str, ToolParam] = {}
        for name, prop in schema.get("properties", {}).items():
            enum = prop.get("enum")
            params[name] = ToolParam(
                type=_param_type(prop),
                description=prop.get("description", ""),
                required=name in required,
                enum=[str(value) for value in enum] if enum else None,
            )
        return params

    def view(self) -> dict[str, Any]:
        """Serializable description shared by every representation."""
        return {
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "input": {
                name: param.model_dump(exclude_none=True)
                for name, param in self.params().items()
            },
        }


class ToolRegistry:
    """Stores tool specs and exports LangChain-compatible tool objects."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolSpec] = {}
        self._observer: Callable[[ToolTrace], None] | None = None

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._tools[spec.name] = spec

    def set_observer(self, observer: Callable[[ToolTrace], None] | None) -> None:
        """Set an optional callback invoked after each tool execution."""
        self._observer = observer

    def get(self, name: str) -> ToolSpec | None:
        return self._tools.get(name)

    def list(self) -> list[ToolSpec]:
        return sorted(self._tools.values(), key=lambda spec: spec.name)

    def categories(self) -> list[str]:
        return sorted({spec.category for spec in self._tools.values() if spec.category})

    def by_category(self, category: str) -> list[ToolSpec]:
        return [spec for spec in self.list() if spec.category == category]

    def execute(self, name: str, payload: dict[str, Any]) -> str:
        spec = self._tools.get(name)
        if spec is None:
            raise KeyError(f"Unknown tool: {name}")
        return self._execute_spec(spec, payload)

    def as_langchain_tools(self) -> list[StructuredTool]:
        tools: list[StructuredTool] = []
        for spec in self.list():
            tools.append(
                StructuredTool.from_function(
                    name=spec.name,
                    description=spec.description,
                    args_schema=spec.args_schema,
                    func=self._build_function(spec),
                )
            )
        return tools

    def _build_function(self, spec: ToolSpec) -> Callable[..., str]:
        def _callable(**kwargs: Any) -> str:
            return self._execute_spec(spec, kwargs)

        return _callable

    def _execute_spec(self, spec: ToolSpec, payload: dict[str, Any]) -> str:
        start = perf_counter()
        output = spec.invoke(payload)
        latency_ms = (perf_counter() - start) * 1000.0

        if self._observer is not None:
            self._observer(
                ToolTrace(
                    name=spec.name,
                    input_payload=payload,
                    output_preview=output[:320],
                    latency_ms=latency_ms,
                )
            )
        return output


def _param_type(prop: dict[str, Any]) -> str:
    if "type" in prop:
        return _JSON_TYPES.get(prop["type"], prop["type"])
    # Optional fields are emitted as anyOf [<type>, null].
    for option in prop.get("anyOf", []):
        option_type = option.get("type")
        if option_type and option_type != "null":
            return _JSON_TYPES.get(option_type, option_type)
    if "enum" in prop:
        return "string"
    return "any"
