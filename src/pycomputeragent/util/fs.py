from __future__ import annotations
from pathlib import Path

class FsError(RuntimeError):
    pass

def resolve_path(cwd: Path, path_str: str) -> Path:
    """Absolute path for a tool argument; must stay under `cwd` after resolving symlinks and `..`."""
    root = cwd.expanduser().resolve()
    p = Path(path_str).expanduser()
    p = (p if p.is_absolute() else root / p).resolve()
    if p != root and root not in p.parents:
        raise FsError(f"Path escapes working directory: {path_str}")
    return p

def display_path(cwd: Path, p: Path) -> str:
    """Path as shown to the model: relative to `cwd` when possible."""
    root = cwd.expanduser().resolve()
    return str(p.relative_to(root)) if root in p.parents else str(p)

def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")
