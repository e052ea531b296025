from __future__ import annotations
from pathlib import Path

from .registry import ToolRegistry
from ..config.models import BehaviorConfig
from ..sandbox.session import CommandSession

from .builtin_tools.bash_tool import BashTool
from .builtin_tools.grep_tool import GrepTool
from .builtin_tools.text_editor import TextEditorTool
from .builtin_tools.web_tools import web_fetch_tool, web_search_tool

def register_builtin_tools(
    registry: ToolRegistry,
    *,
    cwd: Path,
    session: CommandSession,
    behavior: BehaviorConfig,
) -> None:
    registry.register(TextEditorTool(cwd=cwd))
    registry.register(BashTool(session=session))
    registry.register(GrepTool(cwd=cwd))
    if behavior.web_search.enabled:
        registry.register(web_search_tool(behavior.web_search))
    if behavior.web_fetch.enabled:
        registry.register(web_fetch_tool(behavior.web_fetch))
