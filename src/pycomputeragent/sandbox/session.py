"""Persistent shell session used by the bash tool.

A `CommandSession` remembers a working directory and an environment mapping
across commands. Both are only changed by a successful bare `cd` or `export`
and go back to their construction-time values on `restart`. Hosts that run
several conversations in one process should create one session per
conversation; the object itself is not shared implicitly.
"""
from __future__ import annotations

import os
import re
import shlex
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from rich.console import Console

from .policy import check_command
from ..util.subprocess import CmdOutputLimit, CmdTimeout, run_shell

err_console = Console(stderr=True)

RESTART_MESSAGE = "Bash session restarted successfully"

_CD_RE = re.compile(r"^cd(?:\s+([^;&|]+))?$")
_EXPORT_RE = re.compile(r"^export\s+(\w+)=([^;&|]+)$")


class ErrorType(str, Enum):
    TIMEOUT = "timeout"
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    BLOCKED = "blocked"
    OUTPUT_LIMIT = "output_limit"
    EXECUTION = "execution"


@dataclass
class CommandResult:
    success: bool
    stdout: str | None = None
    stderr: str | None = None
    error: str | None = None
    error_type: ErrorType | None = None
    exit_code: int | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"success": self.success}
        for k in ("stdout", "stderr", "error", "exit_code"):
            v = getattr(self, k)
            if v is not None:
                d[k] = v
        if self.error_type is not None:
            d["error_type"] = self.error_type.value
        return d


@dataclass
class CommandSession:
    cwd: str = field(default_factory=os.getcwd)
    env: dict[str, str] = field(default_factory=lambda: dict(os.environ))
    timeout: float = 30
    max_output_bytes: int = 10 * 1024 * 1024
    debug: bool = False

    def __post_init__(self) -> None:
        self._initial_cwd = self.cwd
        self._initial_env = dict(self.env)

    def restart(self) -> None:
        self.cwd = self._initial_cwd
        self.env = dict(self._initial_env)

    def _shell_env(self) -> dict[str, str]:
        # Keep $PWD in step with cwd so `pwd` reports the logical path.
        return {**self.env, "PWD": self.cwd}

    async def execute(self, command: str, restart: bool = False) -> CommandResult:
        if restart:
            self.restart()
            return CommandResult(success=True, stdout=RESTART_MESSAGE)

        check = check_command(command)
        if not check.safe:
            return CommandResult(
                success=False,
                error=f"Blocked for security: {check.reason}",
                error_type=ErrorType.BLOCKED,
            )

        try:
            res = await run_shell(
                command,
                cwd=self.cwd,
                env=self._shell_env(),
                timeout=self.timeout,
                max_output=self.max_output_bytes,
            )
        except CmdTimeout:
            return CommandResult(
                success=False,
                error=f"Command timed out after {self.timeout:g} seconds",
                error_type=ErrorType.TIMEOUT,
            )
        except CmdOutputLimit as e:
            return CommandResult(
                success=False,
                error=str(e),
                error_type=ErrorType.OUTPUT_LIMIT,
                stdout=e.stdout.rstrip() or None,
                stderr=e.stderr.rstrip() or None,
            )
        except FileNotFoundError:
            return CommandResult(success=False, error="Command not found", error_type=ErrorType.NOT_FOUND)
        except PermissionError:
            return CommandResult(success=False, error="Permission denied", error_type=ErrorType.PERMISSION_DENIED)

        stdout = res.stdout.rstrip()
        stderr = res.stderr.rstrip()

        if res.returncode != 0:
            if res.returncode == 127:
                error, kind = "Command not found", ErrorType.NOT_FOUND
            elif res.returncode == 126:
                error, kind = "Permission denied", ErrorType.PERMISSION_DENIED
            else:
                error = f"Command failed with exit code {res.returncode}: {command}"
                kind = ErrorType.EXECUTION
            return CommandResult(
                success=False,
                error=error,
                error_type=kind,
                exit_code=res.returncode,
                stdout=stdout or None,
                stderr=stderr or None,
            )

        await self._update_state(command.strip())
        return CommandResult(success=True, stdout=stdout, stderr=stderr or None)

    async def _update_state(self, command: str) -> None:
        m = _CD_RE.match(command)
        if m:
            target = (m.group(1) or "").strip()
            new_cwd = await self._capture(f"cd {target} && pwd")
            if new_cwd:
                self.cwd = new_cwd.strip()
            return

        m = _EXPORT_RE.match(command)
        if m:
            key = m.group(1)
            value = await self._capture(f"{command} && printf '%s' \"${key}\"")
            if value is not None:
                self.env[key] = value

    async def _capture(self, script: str) -> str | None:
        """Run a helper script in the session; None when it fails."""
        try:
            res = await run_shell(script, cwd=self.cwd, env=self._shell_env(), timeout=5)
        except (CmdTimeout, CmdOutputLimit, OSError) as e:
            self._debug(f"session update failed: {e}")
            return None
        if res.returncode != 0:
            self._debug(f"session update failed: {shlex.quote(script)} -> {res.stderr.strip()}")
            return None
        return res.stdout

    def _debug(self, msg: str) -> None:
        if self.debug:
            err_console.print(f"[dim]{msg}[/dim]")

