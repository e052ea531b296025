from __future__ import annotations
import asyncio
import tempfile
from pathlib import Path

from pycomputeragent.output.handlers import QuietOutputHandler
from pycomputeragent.sandbox.session import CommandSession
from pycomputeragent.session.models import ToolInvocationBlock
from pycomputeragent.tools.builtin_tools.bash_tool import BashTool
from pycomputeragent.tools.builtin_tools.grep_tool import GrepTool
from pycomputeragent.tools.builtin_tools.text_editor import TextEditorTool
from pycomputeragent.tools.dispatcher import dispatch
from pycomputeragent.tools.registry import ToolRegistry


async def main():
    with tempfile.TemporaryDirectory() as td:
        cwd = Path(td)
        reg = ToolRegistry()
        reg.register(TextEditorTool(cwd=cwd))
        reg.register(GrepTool(cwd=cwd))
        reg.register(BashTool(session=CommandSession(cwd=str(cwd))))
        out = QuietOutputHandler()

        async def call(name: str, args: dict) -> str:
            res = await dispatch(ToolInvocationBlock(id=f"t-{name}", name=name, raw_input=args), reg, out)
            return f"{'ERR' if res.is_error else 'OK '} {res.content}"

        editor = "str_replace_based_edit_tool"
        print("CREATE:", await call(editor, {"command": "create", "path": "a.txt", "file_text": "hello\nworld\n"}))
        print("VIEW:", await call(editor, {"command": "view", "path": "a.txt"}))
        print("REPLACE:", await call(editor, {"command": "str_replace", "path": "a.txt", "old_str": "world", "new_str": "WORLD"}))
        print("INSERT:", await call(editor, {"command": "insert", "path": "a.txt", "insert_line": 0, "new_str": "# top"}))
        print("GREP:", await call("grep", {"pattern": "WORLD", "output_mode": "content", "-n": True}))

        print("BASH cd:", await call("bash", {"command": "mkdir -p sub && cd sub"}))
        print("BASH cd:", await call("bash", {"command": "cd sub"}))
        print("BASH pwd:", await call("bash", {"command": "pwd"}))
        print("BASH export:", await call("bash", {"command": "export GREETING=hi"}))
        print("BASH echo:", await call("bash", {"command": "echo $GREETING"}))
        print("BASH blocked:", await call("bash", {"command": "rm -rf /"}))
        print("BASH restart:", await call("bash", {"restart": True}))
        print("BASH pwd:", await call("bash", {"command": "pwd"}))
        print("UNKNOWN:", await call("nope", {}))


if __name__ == "__main__":
    asyncio.run(main())
