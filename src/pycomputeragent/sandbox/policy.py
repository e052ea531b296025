from __future__ import annotations

import re
from dataclasses import dataclass

# Dangerous shapes rejected before anything is spawned.
BLOCKED_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"rm\s+-rf\s+/(?!\w)", re.IGNORECASE),  # rm -rf / (specific paths are fine)
    re.compile(r":\(\)\s*{\s*:\|:&\s*}\s*;:", re.IGNORECASE),  # fork bomb
    re.compile(r"mkfs", re.IGNORECASE),
    re.compile(r"dd\s+if=", re.IGNORECASE),
    re.compile(r">\s*/dev/sd", re.IGNORECASE),
    re.compile(r"shutdown|halt|reboot|poweroff", re.IGNORECASE),
)

# Full-screen programs that would hang waiting on a terminal.
INTERACTIVE_COMMANDS: frozenset[str] = frozenset({
    "vim", "nano", "emacs", "top", "htop", "less", "more",
})


@dataclass(frozen=True)
class SafetyCheck:
    safe: bool
    reason: str | None = None


def check_command(command: str) -> SafetyCheck:
    for pattern in BLOCKED_PATTERNS:
        if pattern.search(command):
            return SafetyCheck(False, "Command matches blocked pattern for system safety")

    parts = command.strip().split()
    if parts and parts[0] in INTERACTIVE_COMMANDS:
        return SafetyCheck(False, "Interactive commands are not supported")

    return SafetyCheck(True)
