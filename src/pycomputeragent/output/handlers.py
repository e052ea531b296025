from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Optional, Protocol

from rich.console import Console
from rich.markup import escape
from rich.status import Status

from ..session.models import Turn

OutputFormat = Literal["json", "text"]

console = Console()
err_console = Console(stderr=True)


class OutputHandler(Protocol):
    """Notification sink used by the runner and dispatcher.

    Return values are never inspected.
    """
    def start_thinking(self) -> None: ...
    def stop_thinking(self, message: str) -> None: ...
    def start_tool(self, tool_name: str) -> None: ...
    def stop_tool(self, tool_name: str, success: bool, message: str) -> None: ...
    def show_message(self, message: str) -> None: ...
    def show_success(self, message: str) -> None: ...
    def show_error(self, message: str) -> None: ...
    def show_debug(self, message: str) -> None: ...


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class _DebugMixin:
    debug: bool = False

    def show_debug(self, message: str) -> None:
        # stderr only, so it never mixes with JSON on stdout
        if self.debug:
            err_console.print(f"[dim]\\[debug] {escape(message)}[/dim]")


class RichOutputHandler(_DebugMixin):
    """Verbose text output: spinner while thinking, one line per tool."""

    def __init__(self, debug: bool = False, out: Console | None = None):
        self.debug = debug
        self.console = out or console
        self._status: Optional[Status] = None

    def _start(self, text: str) -> None:
        self._stop()
        self._status = self.console.status(text)
        self._status.start()

    def _stop(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None

    def start_thinking(self) -> None:
        self._start("Thinking...")

    def stop_thinking(self, message: str) -> None:
        self._stop()
        self.console.print(f"[dim]{escape(message)}[/dim]")

    def start_tool(self, tool_name: str) -> None:
        self._start(f"Using tool: {tool_name}")

    def stop_tool(self, tool_name: str, success: bool, message: str) -> None:
        self._stop()
        color = "green" if success else "red"
        self.console.print(f"[{color}]Tool {escape(tool_name)}: {escape(message)}[/{color}]")

    def show_message(self, message: str) -> None:
        self._stop()
        self.console.print(message, markup=False)

    def show_success(self, message: str) -> None:
        self._stop()
        self.console.print(f"[green]{escape(message)}[/green]")

    def show_error(self, message: str) -> None:
        self._stop()
        err_console.print(f"[red]{escape(message)}[/red]")


class QuietOutputHandler(_DebugMixin):
    """Minimal output: only assistant text and errors."""

    def __init__(self, debug: bool = False, out: Console | None = None):
        self.debug = debug
        self.console = out or console

    def start_thinking(self) -> None:
        pass

    def stop_thinking(self, message: str) -> None:
        pass

    def start_tool(self, tool_name: str) -> None:
        pass

    def stop_tool(self, tool_name: str, success: bool, message: str) -> None:
        pass

    def show_message(self, message: str) -> None:
        self.console.print(message, markup=False)

    def show_success(self, message: str) -> None:
        self.console.print(message, markup=False)

    def show_error(self, message: str) -> None:
        err_console.print(message, markup=False)


@dataclass
class ToolCallRecord:
    name: str
    success: bool
    message: str
    timestamp: str


@dataclass
class JsonOutputHandler(_DebugMixin):
    """Collects everything and prints a single JSON document at the end."""

    model: str
    debug: bool = False
    messages: list[dict[str, Any]] = field(default_factory=list)
    tool_calls: list[ToolCallRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    stop_reason: str | None = None
    _current_tool: tuple[str, str] | None = None

    def start_thinking(self) -> None:
        pass

    def stop_thinking(self, message: str) -> None:
        self.stop_reason = message

    def start_tool(self, tool_name: str) -> None:
        self._current_tool = (tool_name, _now())

    def stop_tool(self, tool_name: str, success: bool, message: str) -> None:
        if self._current_tool and self._current_tool[0] == tool_name:
            self.tool_calls.append(ToolCallRecord(tool_name, success, message, self._current_tool[1]))
            self._current_tool = None

    def show_message(self, message: str) -> None:
        pass

    def show_success(self, message: str) -> None:
        pass

    def show_error(self, message: str) -> None:
        self.errors.append(message)

    def add_turns(self, turns: list[Turn]) -> None:
        ts = _now()
        for t in turns:
            self.messages.append({"role": t.role, "content": t.to_api()["content"], "timestamp": ts})

    def get_data(self) -> dict[str, Any]:
        return {
            "messages": self.messages,
            "toolCalls": [tc.__dict__ for tc in self.tool_calls],
            "stopReason": self.stop_reason,
            "model": self.model,
            "errors": self.errors,
        }

    def output(self, out: Console | None = None) -> None:
        (out or console).print_json(json.dumps(self.get_data(), ensure_ascii=False))


def create_output_handler(
    format: OutputFormat,
    verbose: bool,
    model: str,
    debug: bool = False,
) -> OutputHandler:
    if format == "json":
        return JsonOutputHandler(model=model, debug=debug)
    if verbose:
        return RichOutputHandler(debug=debug)
    return QuietOutputHandler(debug=debug)
