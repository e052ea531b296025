from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional
import re

from pydantic import BaseModel, ConfigDict, Field

from ..base import Capability, ToolSpec
from ..schema import model_to_json_schema
from ...util.fs import FsError, display_path, read_text, resolve_path

# --type values -> file suffixes
FILE_TYPES: dict[str, tuple[str, ...]] = {
    "py": (".py", ".pyi"),
    "js": (".js", ".mjs", ".cjs", ".jsx"),
    "ts": (".ts", ".tsx", ".mts", ".cts"),
    "rust": (".rs",),
    "go": (".go",),
    "java": (".java",),
    "c": (".c", ".h"),
    "cpp": (".cpp", ".cc", ".cxx", ".hpp", ".hh", ".h"),
    "md": (".md", ".markdown"),
    "json": (".json",),
    "yaml": (".yaml", ".yml"),
    "sh": (".sh", ".bash", ".zsh"),
    "html": (".html", ".htm"),
    "css": (".css", ".scss"),
}

SKIP_DIRS = {".git", ".hg", ".svn", "node_modules", "__pycache__", ".venv"}

class GrepResult(BaseModel):
    success: bool
    content: Optional[str] = None
    error: Optional[str] = None

class GrepInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    pattern: str = Field(description="The regular expression pattern to search for")
    path: Optional[str] = Field(None, description="File or directory to search in (defaults to current directory)")
    output_mode: Literal["content", "files_with_matches", "count"] = Field(
        "files_with_matches",
        description='Output mode: "content" shows matching lines, "files_with_matches" shows file paths, "count" shows match counts',
    )
    type: Optional[str] = Field(None, description="File type to search (e.g., js, py, rust, go, java)")
    glob: Optional[str] = Field(None, description='Glob pattern to filter files (e.g., "*.js", "**/*.tsx")')
    ignore_case: bool = Field(False, alias="-i", description="Case insensitive search")
    line_numbers: bool = Field(False, alias="-n", description="Show line numbers in output (requires output_mode: content)")
    after: int = Field(0, alias="-A", ge=0, description="Number of lines to show after each match (requires output_mode: content)")
    before: int = Field(0, alias="-B", ge=0, description="Number of lines to show before each match (requires output_mode: content)")
    context: int = Field(0, alias="-C", ge=0, description="Number of lines to show before and after each match (requires output_mode: content)")
    multiline: bool = Field(False, description="Enable multiline mode where . matches newlines and patterns can span lines")
    head_limit: Optional[int] = Field(None, ge=1, description="Limit output to first N lines/entries")

def _iter_files(target: Path, include: Optional[str], ftype: Optional[str]):
    if target.is_file():
        yield target
        return
    suffixes = FILE_TYPES.get(ftype or "", ())
    for p in sorted(target.rglob("*")):
        if any(part in SKIP_DIRS for part in p.relative_to(target).parts):
            continue
        if not p.is_file():
            continue
        if include and not p.match(include):
            continue
        if ftype and p.suffix not in suffixes:
            continue
        yield p

def _line_of(text: str, offset: int) -> int:
    return text.count("\n", 0, offset)

@dataclass
class GrepTool:
    cwd: Path = field(default_factory=Path.cwd)
    spec: ToolSpec = ToolSpec(
        name="grep",
        description=(
            "Search file contents with regular expressions. Supports filtering by file type, "
            "glob patterns, and various output modes."
        ),
        parameters=model_to_json_schema(GrepInput),
    )
    input_model: type[GrepInput] = GrepInput
    capability: Capability = Capability.LOCAL

    async def execute(self, args: GrepInput) -> GrepResult:
        cwd = self.cwd.expanduser().resolve()
        path = args.path or "."
        try:
            target = resolve_path(cwd, path)
        except FsError as e:
            return GrepResult(success=False, error=str(e))
        if not target.exists():
            return GrepResult(success=False, error=f"Path not found: {path}")
        if args.type and args.type not in FILE_TYPES:
            return GrepResult(success=False, error=f"Unknown file type: {args.type}")

        flags = re.IGNORECASE if args.ignore_case else 0
        if args.multiline:
            flags |= re.MULTILINE | re.DOTALL
        try:
            rx = re.compile(args.pattern, flags)
        except re.error as e:
            return GrepResult(success=False, error=f"Invalid regex: {e}")

        before = max(args.before, args.context)
        after = max(args.after, args.context)

        out_lines: list[str] = []
        for f in _iter_files(target, args.glob, args.type):
            try:
                text = read_text(f)
            except OSError:
                continue
            rel = display_path(cwd, f)
            lines = text.splitlines()

            if args.multiline:
                hit_lines = sorted({_line_of(text, m.start()) for m in rx.finditer(text)})
            else:
                hit_lines = [i for i, line in enumerate(lines) if rx.search(line)]
            if not hit_lines:
                continue

            if args.output_mode == "files_with_matches":
                out_lines.append(rel)
            elif args.output_mode == "count":
                out_lines.append(f"{rel}:{len(hit_lines)}")
            else:
                shown: set[int] = set()
                for i in hit_lines:
                    for j in range(max(0, i - before), min(len(lines), i + after + 1)):
                        shown.add(j)
                hits = set(hit_lines)
                for j in sorted(shown):
                    sep = ":" if j in hits else "-"
                    prefix = f"{rel}{sep}{j + 1}{sep}" if args.line_numbers else f"{rel}{sep}"
                    out_lines.append(prefix + lines[j])

            if args.head_limit and len(out_lines) >= args.head_limit:
                break

        if args.head_limit:
            out_lines = out_lines[: args.head_limit]
        return GrepResult(success=True, content="\n".join(out_lines) if out_lines else "No matches found")
