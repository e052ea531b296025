import json

import pytest
from pydantic import BaseModel

from pycomputeragent.config.models import WebSearchConfig
from pycomputeragent.session.models import ToolInvocationBlock
from pycomputeragent.tools.base import function_tool
from pycomputeragent.tools.builtin_tools.web_tools import web_search_tool
from pycomputeragent.tools.dispatcher import dispatch
from pycomputeragent.tools.registry import ToolRegistry


class CountInput(BaseModel):
    n: int


def make_registry(run, name="count"):
    reg = ToolRegistry()
    reg.register(function_tool(name, "test tool", CountInput, run))
    return reg


def invocation(name="count", raw=None, id="toolu_1"):
    return ToolInvocationBlock(id=id, name=name, raw_input=raw if raw is not None else {"n": 1})


@pytest.mark.asyncio
async def test_success_serializes_result(output):
    async def run(args):
        return {"doubled": args.n * 2}

    res = await dispatch(invocation(raw={"n": 21}), make_registry(run), output)
    assert res.id == "toolu_1"
    assert res.is_error is False
    assert json.loads(res.content) == {"doubled": 42}
    assert output.calls[0] == ("start_tool", "count")
    assert ("stop_tool", "count", True, "Success") in output.calls


@pytest.mark.asyncio
async def test_unknown_tool_is_error_result(output):
    res = await dispatch(invocation(name="nope"), ToolRegistry(), output)
    assert res.is_error is True
    assert res.content == "Error: Unknown tool nope"
    assert ("show_error", "Unknown tool: nope") in output.calls
    assert ("stop_tool", "nope", False, "Unknown tool") in output.calls


@pytest.mark.asyncio
async def test_remote_tool_returns_none(output):
    reg = ToolRegistry()
    reg.register(web_search_tool(WebSearchConfig()))
    res = await dispatch(invocation(name="web_search", raw={"query": "x"}), reg, output)
    assert res is None
    assert ("stop_tool", "web_search", True, "Executed by API") in output.calls


@pytest.mark.asyncio
async def test_invalid_input_never_runs_tool(output):
    seen = []

    async def run(args):
        seen.append(args)
        return "ran"

    res = await dispatch(invocation(raw={"n": "not a number"}), make_registry(run), output)
    assert seen == []
    assert res.is_error is True
    assert res.content.startswith("Error: Invalid input - ")
    assert '"n"' in res.content


@pytest.mark.asyncio
async def test_exception_becomes_error_result(output):
    async def run(args):
        raise RuntimeError("boom")

    res = await dispatch(invocation(), make_registry(run), output)
    assert res.is_error is True
    assert res.content == "Error: Tool count failed - boom"


@pytest.mark.asyncio
@pytest.mark.parametrize("empty", [None, "", [], {}])
async def test_empty_result_is_error(output, empty):
    async def run(args):
        return empty

    res = await dispatch(invocation(), make_registry(run), output)
    assert res.is_error is True
    assert res.content == "Error: No result returned"


@pytest.mark.asyncio
async def test_payload_failure_is_still_a_normal_result(output):
    class Outcome(BaseModel):
        success: bool
        error: str | None = None

    async def run(args):
        return Outcome(success=False, error="nothing to do")

    res = await dispatch(invocation(), make_registry(run), output)
    assert res.is_error is False
    assert json.loads(res.content) == {"success": False, "error": "nothing to do"}
    assert ("show_debug", "Result: Failed") in output.calls
