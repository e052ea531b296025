from __future__ import annotations
from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from ..base import Capability, ToolSpec
from ..schema import model_to_json_schema
from ...sandbox.session import CommandResult, CommandSession

class BashInput(BaseModel):
    command: str = Field("", description="The bash shell command to execute")
    restart: bool = Field(False, description="Set to true to restart the bash session")

@dataclass
class BashTool:
    """Shell tool backed by a persistent CommandSession.

    The session is passed in explicitly; tools that should not share state
    get their own session.
    """
    session: CommandSession = field(default_factory=CommandSession)
    spec: ToolSpec = ToolSpec(
        name="bash",
        description="Run a shell command in a persistent session (cwd and exported variables are kept).",
        parameters=model_to_json_schema(BashInput),
        type="bash_20250124",
    )
    input_model: type[BashInput] = BashInput
    capability: Capability = Capability.LOCAL

    async def execute(self, args: BashInput) -> CommandResult:
        if not args.restart and not args.command.strip():
            return CommandResult(success=False, error="Empty command.")
        return await self.session.execute(args.command, restart=args.restart)
