import io
import json

from rich.console import Console

from pycomputeragent.output.handlers import (
    JsonOutputHandler,
    QuietOutputHandler,
    RichOutputHandler,
    create_output_handler,
)
from pycomputeragent.session.models import TextBlock, ToolInvocationBlock, ToolResultBlock, Turn


def test_factory_picks_handler():
    assert isinstance(create_output_handler("json", True, "m"), JsonOutputHandler)
    assert isinstance(create_output_handler("text", True, "m"), RichOutputHandler)
    assert isinstance(create_output_handler("text", False, "m"), QuietOutputHandler)


def test_json_handler_collects_run():
    h = JsonOutputHandler(model="claude-test")
    h.start_thinking()
    h.stop_thinking("Tool use initiated.")
    h.start_tool("bash")
    h.stop_tool("bash", True, "Success")
    h.start_tool("grep")
    h.stop_tool("grep", False, "Failed")
    h.show_error("grep broke")
    h.stop_thinking("Reached natural stopping point.")
    h.add_turns([
        Turn.user_text("list files"),
        Turn(role="assistant", content=[ToolInvocationBlock("t1", "bash", {"command": "ls"})]),
        Turn(role="user", content=[ToolResultBlock("t1", "{}")]),
        Turn(role="assistant", content=[TextBlock("Done")]),
    ])

    data = h.get_data()
    assert data["model"] == "claude-test"
    assert data["stopReason"] == "Reached natural stopping point."
    assert data["errors"] == ["grep broke"]
    assert [(t["name"], t["success"]) for t in data["toolCalls"]] == [("bash", True), ("grep", False)]
    assert [m["role"] for m in data["messages"]] == ["user", "assistant", "user", "assistant"]
    assert data["messages"][1]["content"][0]["type"] == "tool_use"

    buf = io.StringIO()
    h.output(Console(file=buf, width=200))
    assert json.loads(buf.getvalue())["model"] == "claude-test"


def test_quiet_handler_prints_only_messages():
    buf = io.StringIO()
    h = QuietOutputHandler(out=Console(file=buf, width=200))
    h.start_thinking()
    h.start_tool("bash")
    h.stop_tool("bash", True, "Success")
    h.show_message("[not markup] answer")
    assert buf.getvalue() == "[not markup] answer\n"


def test_rich_handler_reports_tools():
    buf = io.StringIO()
    h = RichOutputHandler(out=Console(file=buf, width=200))
    h.start_tool("bash")
    h.stop_tool("bash", False, "Failed")
    assert "Tool bash: Failed" in buf.getvalue()
