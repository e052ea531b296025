from __future__ import annotations
import asyncio
import os
import shutil
import signal
from dataclasses import dataclass
from typing import Mapping, Optional

class CmdTimeout(Exception):
    def __init__(self, timeout: float):
        super().__init__(f"Command timed out after {timeout:g} seconds")
        self.timeout = timeout

class CmdOutputLimit(Exception):
    def __init__(self, limit: int, stdout: str = "", stderr: str = ""):
        super().__init__(f"Command output exceeded {limit} bytes")
        self.limit = limit
        self.stdout = stdout
        self.stderr = stderr

@dataclass
class CmdResult:
    returncode: int
    stdout: str
    stderr: str

def _shell() -> str:
    # POSIX: prefer bash, fallback to sh
    return shutil.which("bash") or "/bin/sh"

async def _drain(stream: asyncio.StreamReader, buf: bytearray, total: list[int], limit: int) -> None:
    while True:
        chunk = await stream.read(65536)
        if not chunk:
            return
        buf.extend(chunk)
        total[0] += len(chunk)
        if total[0] > limit:
            raise CmdOutputLimit(limit)

async def run_shell(
    command: str,
    cwd: str,
    env: Optional[Mapping[str, str]] = None,
    timeout: Optional[float] = 30,
    max_output: int = 10 * 1024 * 1024,
) -> CmdResult:
    """Run `command` through a real shell so built-ins, pipes and expansion work.

    Raises CmdTimeout when the wall clock runs out and CmdOutputLimit when the
    combined stdout/stderr grows past `max_output`; the child is killed in both
    cases. FileNotFoundError/PermissionError from spawning propagate.
    """
    p = await asyncio.create_subprocess_exec(
        _shell(), "-c", command,
        cwd=cwd,
        env=dict(env) if env is not None else None,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        start_new_session=(os.name != "nt"),
    )
    out, err = bytearray(), bytearray()
    total = [0]

    async def _collect() -> int:
        await asyncio.gather(
            _drain(p.stdout, out, total, max_output),
            _drain(p.stderr, err, total, max_output),
        )
        return await p.wait()

    try:
        code = await asyncio.wait_for(_collect(), timeout=timeout)
    except asyncio.TimeoutError:
        _kill(p)
        await p.wait()
        raise CmdTimeout(timeout or 0)
    except CmdOutputLimit as e:
        _kill(p)
        await p.wait()
        raise CmdOutputLimit(e.limit, _decode(out), _decode(err))
    return CmdResult(code, _decode(out), _decode(err))

def _kill(p: asyncio.subprocess.Process) -> None:
    if p.returncode is not None:
        return
    try:
        if os.name != "nt":
            os.killpg(p.pid, signal.SIGKILL)
        else:
            p.kill()
    except ProcessLookupError:
        pass

def _decode(b: bytes | bytearray) -> str:
    return bytes(b).decode("utf-8", errors="replace")
