from __future__ import annotations

import copy
from typing import Any

import pytest

from pycomputeragent.session.models import ServiceResponse, TextBlock, ToolInvocationBlock, Usage


class RecordingOutput:
    """Output handler that records every notification as a tuple."""

    def __init__(self):
        self.calls: list[tuple] = []

    def start_thinking(self) -> None:
        self.calls.append(("start_thinking",))

    def stop_thinking(self, message: str) -> None:
        self.calls.append(("stop_thinking", message))

    def start_tool(self, tool_name: str) -> None:
        self.calls.append(("start_tool", tool_name))

    def stop_tool(self, tool_name: str, success: bool, message: str) -> None:
        self.calls.append(("stop_tool", tool_name, success, message))

    def show_message(self, message: str) -> None:
        self.calls.append(("show_message", message))

    def show_success(self, message: str) -> None:
        self.calls.append(("show_success", message))

    def show_error(self, message: str) -> None:
        self.calls.append(("show_error", message))

    def show_debug(self, message: str) -> None:
        self.calls.append(("show_debug", message))

    def named(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]


class ScriptedService:
    """Model service that replays a list of responses or exceptions.

    The last item is repeated once the script runs out.
    """

    def __init__(self, script: list[Any]):
        self.script = list(script)
        self.requests: list[dict[str, Any]] = []

    async def create(self, *, model, tools, system, max_tokens, messages) -> ServiceResponse:
        self.requests.append({
            "model": model,
            "tools": copy.deepcopy(tools),
            "system": system,
            "max_tokens": max_tokens,
            "messages": copy.deepcopy(messages),
        })
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, BaseException):
            raise item
        return item


def text_response(text: str, stop_reason: str = "end_turn") -> ServiceResponse:
    return ServiceResponse(content=[TextBlock(text)], stop_reason=stop_reason, usage=Usage(10, 5))


def tool_response(*calls: tuple[str, str, dict], text: str | None = None) -> ServiceResponse:
    content: list = [TextBlock(text)] if text else []
    content += [ToolInvocationBlock(id=i, name=n, raw_input=a) for i, n, a in calls]
    return ServiceResponse(content=content, stop_reason="tool_use", usage=Usage(10, 5))


@pytest.fixture
def output() -> RecordingOutput:
    return RecordingOutput()


@pytest.fixture(autouse=True)
def no_global_config(monkeypatch):
    # Keep the user's real behavior config out of the tests.
    monkeypatch.setattr("pycomputeragent.config.loader._global_candidate_paths", lambda: [])
