from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol, Union

from pydantic import BaseModel

from .schema import model_to_json_schema

class Capability(str, Enum):
    LOCAL = "local"     # runs in this process
    REMOTE = "remote"   # runs inside the model service

@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str = ""
    parameters: dict[str, Any] = field(default_factory=dict)  # JSONSchema
    # Service-side tool type (e.g. "bash_20250124", "web_search_20250305")
    type: Optional[str] = None
    # Extra fields forwarded verbatim in the tool descriptor
    options: dict[str, Any] = field(default_factory=dict)

    def to_api(self) -> dict[str, Any]:
        d: dict[str, Any] = {"name": self.name}
        if self.type:
            d["type"] = self.type
        else:
            d["description"] = self.description
            d["input_schema"] = self.parameters
        d.update(self.options)
        return d

class LocalTool(Protocol):
    spec: ToolSpec
    input_model: type[BaseModel]
    capability: Capability
    async def execute(self, args: Any) -> Any: ...

class RemoteTool(Protocol):
    spec: ToolSpec
    capability: Capability

Tool = Union[LocalTool, RemoteTool]

def is_local(tool: Tool) -> bool:
    return tool.capability is Capability.LOCAL

@dataclass(frozen=True)
class ApiTool:
    """Descriptor for a tool the model service executes itself."""
    spec: ToolSpec
    capability: Capability = Capability.REMOTE

@dataclass(frozen=True)
class FunctionTool:
    """Local tool built from an input model and an async callable."""
    spec: ToolSpec
    input_model: type[BaseModel]
    run: Callable[[Any], Awaitable[Any]]
    capability: Capability = Capability.LOCAL

    async def execute(self, args: Any) -> Any:
        return await self.run(args)

def function_tool(
    name: str,
    description: str,
    input_model: type[BaseModel],
    run: Callable[[Any], Awaitable[Any]],
    *,
    type: Optional[str] = None,
) -> FunctionTool:
    spec = ToolSpec(
        name=name,
        description=description,
        parameters=model_to_json_schema(input_model),
        type=type,
    )
    return FunctionTool(spec=spec, input_model=input_model, run=run)
