from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from ..base import Capability, ToolSpec
from ..schema import model_to_json_schema
from ...util.fs import FsError, read_text, resolve_path

class EditorResult(BaseModel):
    success: bool
    content: Optional[str] = None
    error: Optional[str] = None

class EditorInput(BaseModel):
    command: Literal["view", "create", "str_replace", "insert"] = Field(
        description=(
            "Command to execute: 'view' to view file contents, 'create' to create a new file, "
            "'str_replace' to replace text, 'insert' to insert text at a specific line."
        ),
    )
    path: str = Field(description="Path to the file to operate on")
    view_range: Optional[tuple[int, int]] = Field(None, description="1-based inclusive line range for 'view'.")
    old_str: Optional[str] = None
    new_str: Optional[str] = None
    file_text: Optional[str] = None
    insert_line: Optional[int] = Field(None, ge=0, description="Insert after this line (0 = top of file).")

    @model_validator(mode="after")
    def _check_command_fields(self) -> "EditorInput":
        if self.view_range is not None and min(self.view_range) < 1:
            raise ValueError("view_range values must be >= 1")
        if self.command == "str_replace" and (self.old_str is None or self.new_str is None):
            raise ValueError("str_replace requires old_str and new_str")
        if self.command == "insert" and (self.insert_line is None or self.new_str is None):
            raise ValueError("insert requires insert_line and new_str")
        return self

def handle_view(cwd: Path, path: str, view_range: Optional[tuple[int, int]] = None) -> EditorResult:
    try:
        p = resolve_path(cwd, path)
    except FsError as e:
        return EditorResult(success=False, error=str(e))
    if not p.exists():
        return EditorResult(success=False, error=f"File not found: {path}")
    try:
        if p.is_dir():
            names = sorted(c.name for c in p.iterdir())
            return EditorResult(success=True, content="Directory contents:\n" + "\n".join(names))
        content = read_text(p)
    except OSError as e:
        return EditorResult(success=False, error=f"Error viewing file: {e}")
    if view_range:
        start, end = view_range
        content = "\n".join(content.split("\n")[start - 1:end])
    return EditorResult(success=True, content=content)

@dataclass
class TextEditorTool:
    cwd: Path = field(default_factory=Path.cwd)
    spec: ToolSpec = ToolSpec(
        name="str_replace_based_edit_tool",
        description="View, create and edit text files.",
        parameters=model_to_json_schema(EditorInput),
        type="text_editor_20250728",
        options={"max_characters": 10000},
    )
    input_model: type[EditorInput] = EditorInput
    capability: Capability = Capability.LOCAL

    async def execute(self, args: EditorInput) -> EditorResult:
        if args.command == "view":
            return handle_view(self.cwd, args.path, args.view_range)
        try:
            p = resolve_path(self.cwd, args.path)
        except FsError as e:
            return EditorResult(success=False, error=str(e))
        if args.command == "create":
            return self._create(p, args.path, args.file_text or "")
        if args.command == "str_replace":
            return self._str_replace(p, args.path, args.old_str or "", args.new_str or "")
        return self._insert(p, args.path, args.insert_line or 0, args.new_str or "")

    def _create(self, p: Path, path: str, text: str) -> EditorResult:
        if p.exists():
            return EditorResult(success=False, error=f"File already exists: {path}")
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_text(text, encoding="utf-8")
        except OSError as e:
            return EditorResult(success=False, error=f"Error creating file: {e}")
        return EditorResult(success=True, content="File created successfully")

    def _str_replace(self, p: Path, path: str, old: str, new: str) -> EditorResult:
        if not p.is_file():
            return EditorResult(success=False, error=f"File not found: {path}")
        try:
            content = read_text(p)
            if old not in content:
                return EditorResult(success=False, error="String to replace not found in file")
            p.write_text(content.replace(old, new, 1), encoding="utf-8")
        except OSError as e:
            return EditorResult(success=False, error=f"Error replacing text: {e}")
        return EditorResult(success=True, content="File updated successfully")

    def _insert(self, p: Path, path: str, line: int, text: str) -> EditorResult:
        if not p.is_file():
            return EditorResult(success=False, error=f"File not found: {path}")
        try:
            content = read_text(p)
            lines = content.split("\n")
            if line > len(lines):
                return EditorResult(
                    success=False,
                    error=f"insert_line {line} is past the end of a {len(lines)}-line file",
                )
            lines[line:line] = [text]
            p.write_text("\n".join(lines), encoding="utf-8")
        except OSError as e:
            return EditorResult(success=False, error=f"Error inserting text: {e}")
        return EditorResult(success=True, content="Text inserted successfully")
