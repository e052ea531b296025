from __future__ import annotations

import dataclasses
import json
from typing import Any

from pydantic import BaseModel, ValidationError

from .base import is_local
from .registry import ToolRegistry
from ..output.handlers import OutputHandler
from ..session.models import ToolInvocationBlock, ToolResultBlock


def _is_empty(result: Any) -> bool:
    return result is None or (isinstance(result, (str, list, dict, tuple)) and len(result) == 0)


def _to_jsonable(result: Any) -> Any:
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json", exclude_none=True)
    if hasattr(result, "to_dict"):
        return result.to_dict()
    if dataclasses.is_dataclass(result) and not isinstance(result, type):
        return dataclasses.asdict(result)
    if isinstance(result, list):
        return [_to_jsonable(r) for r in result]
    return result


def serialize_result(result: Any) -> str:
    return json.dumps(_to_jsonable(result), ensure_ascii=False, default=str)


def result_succeeded(result: Any) -> bool:
    """Tools that report `success: false` in their payload still produce a normal result."""
    if hasattr(result, "success"):
        return bool(result.success)
    return True


async def dispatch(
    invocation: ToolInvocationBlock,
    registry: ToolRegistry,
    output: OutputHandler,
) -> ToolResultBlock | None:
    """Run one model-issued tool invocation.

    Returns None for tools the model service executes itself. Every local
    failure (unknown tool, invalid input, exception, empty result) becomes a
    ToolResultBlock with is_error=True; nothing escapes this function.
    """
    output.start_tool(invocation.name)

    tool = registry.get_optional(invocation.name)
    if tool is None:
        output.show_error(f"Unknown tool: {invocation.name}")
        output.stop_tool(invocation.name, False, "Unknown tool")
        return ToolResultBlock(
            id=invocation.id,
            content=f"Error: Unknown tool {invocation.name}",
            is_error=True,
        )

    if not is_local(tool):
        output.stop_tool(invocation.name, True, "Executed by API")
        return None

    try:
        args = tool.input_model.model_validate(invocation.raw_input or {})
    except ValidationError as e:
        details = json.dumps(e.errors(include_url=False), ensure_ascii=False, default=str)
        output.show_error(f"Invalid input: {details}")
        output.stop_tool(invocation.name, False, "Failed")
        return ToolResultBlock(
            id=invocation.id,
            content=f"Error: Invalid input - {details}",
            is_error=True,
        )

    try:
        result = await tool.execute(args)
    except Exception as e:
        output.show_error(f"Tool {invocation.name} exception: {e}")
        output.stop_tool(invocation.name, False, "Failed")
        return ToolResultBlock(
            id=invocation.id,
            content=f"Error: Tool {invocation.name} failed - {e}",
            is_error=True,
        )

    if _is_empty(result):
        output.stop_tool(invocation.name, False, "Failed")
        return ToolResultBlock(id=invocation.id, content="Error: No result returned", is_error=True)

    output.show_debug(f"Result: {'Success' if result_succeeded(result) else 'Failed'}")
    output.stop_tool(invocation.name, True, "Success")
    return ToolResultBlock(id=invocation.id, content=serialize_result(result), is_error=False)
