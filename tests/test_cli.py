import pytest
from typer.testing import CliRunner

from pycomputeragent import main as cli
from pycomputeragent.app_context import AppContext, load_system_prompt
from pycomputeragent.config.loader import load_behavior_config
from pycomputeragent.events.store import EventStore
from pycomputeragent.llm.factory import ProviderConfig
from pycomputeragent.sandbox.session import CommandSession
from pycomputeragent.tools.builtin import register_builtin_tools
from pycomputeragent.tools.registry import ToolRegistry

from conftest import ScriptedService, text_response, tool_response

runner = CliRunner()


def make_context(tmp_path, service, env=None) -> AppContext:
    behavior = load_behavior_config(cwd=tmp_path, env=env or {})
    session = CommandSession(cwd=str(tmp_path))
    tools = ToolRegistry()
    register_builtin_tools(tools, cwd=tmp_path, session=session, behavior=behavior)
    return AppContext(
        cwd=tmp_path,
        provider=ProviderConfig(name="test", base_url="http://unused", model="test-model", api_key="k"),
        service=service,
        tools=tools,
        session=session,
        behavior=behavior,
    )


@pytest.fixture
def fake_app(tmp_path, monkeypatch):
    """Patch AppContext.from_env to hand out a context backed by a scripted service."""

    def install(script):
        service = ScriptedService(script)

        def from_env(**kw):
            ctx = make_context(tmp_path, service)
            ctx.max_depth = kw.get("max_depth")
            return ctx

        monkeypatch.setattr(AppContext, "from_env", staticmethod(from_env))
        return service

    return install


def test_builtin_tools_follow_behavior(tmp_path):
    ctx = make_context(tmp_path, ScriptedService([text_response("x")]))
    assert ctx.tools.names() == ["str_replace_based_edit_tool", "bash", "grep", "web_search"]

    ctx = make_context(tmp_path, ScriptedService([text_response("x")]), env={"WEB_FETCH_ENABLED": "true"})
    assert "web_fetch" in ctx.tools.names()
    bash_spec = ctx.tools.get("bash").spec.to_api()
    assert bash_spec == {"name": "bash", "type": "bash_20250124"}


def test_system_prompt_includes_context_file(tmp_path):
    prompt, n = load_system_prompt(tmp_path, "./tmp/ASSISTANT.md")
    assert "No context available" in prompt

    (tmp_path / "tmp").mkdir()
    (tmp_path / "tmp" / "ASSISTANT.md").write_text("Prefer short answers.")
    prompt, n = load_system_prompt(tmp_path, "./tmp/ASSISTANT.md")
    assert "Prefer short answers." in prompt
    assert n == len("Prefer short answers.")


def test_chat_one_shot(fake_app):
    service = fake_app([text_response("Hello there")])
    result = runner.invoke(cli.app, ["chat", "-m", "hi", "--no-events"])
    assert result.exit_code == 0, result.output
    assert "Hello there" in result.stdout
    assert service.requests[0]["messages"][0]["content"][0]["text"] == "hi"


def test_chat_json_format(fake_app):
    fake_app([text_response("Hello there")])
    result = runner.invoke(cli.app, ["chat", "-m", "hi", "--format", "json", "--no-events"])
    assert result.exit_code == 0, result.output
    assert '"model": "test-model"' in result.stdout
    assert '"stopReason": "Reached natural stopping point."' in result.stdout


def test_chat_max_depth_exits_nonzero(fake_app):
    service = fake_app([tool_response(("a", "grep", {"pattern": "x"}))])
    result = runner.invoke(cli.app, ["chat", "-m", "loop", "--max-depth", "2", "--no-events"])
    assert result.exit_code == 1
    assert len(service.requests) == 2


def test_interactive_session_keeps_history(fake_app):
    service = fake_app([text_response("first"), text_response("second")])
    result = runner.invoke(cli.app, ["chat", "--no-events"], input="one\ntwo\n")
    assert result.exit_code == 0, result.output
    assert "Goodbye!" in result.stdout
    assert [m["role"] for m in service.requests[1]["messages"]] == ["user", "assistant", "user"]


def test_bad_format_is_rejected(fake_app):
    fake_app([text_response("x")])
    result = runner.invoke(cli.app, ["chat", "-m", "hi", "--format", "xml"])
    assert result.exit_code != 0


def test_json_format_requires_message(fake_app):
    service = fake_app([text_response("THE ANSWER")])
    result = runner.invoke(cli.app, ["chat", "--format", "json", "--no-events"], input="hello\n")
    assert result.exit_code != 0
    assert service.requests == []


def test_interactive_turns_each_print_answer(fake_app):
    service = fake_app([text_response("first answer"), text_response("second answer")])
    result = runner.invoke(cli.app, ["chat", "--no-events"], input="one\ntwo\nexit\n")
    assert result.exit_code == 0, result.output
    assert "first answer" in result.stdout
    assert "second answer" in result.stdout
    assert len(service.requests) == 2


def test_events_command(tmp_path, monkeypatch):
    monkeypatch.setattr("pycomputeragent.events.store.user_data_dir", lambda name: str(tmp_path))
    EventStore.open("run-x").append("llm.request", {"depth": 0})
    result = runner.invoke(cli.app, ["events", "--run", "run-x"])
    assert result.exit_code == 0, result.output
    assert "llm.request" in result.stdout
