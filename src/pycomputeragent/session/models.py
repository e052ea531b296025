from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Literal, Union

Role = Literal["user", "assistant"]

@dataclass
class TextBlock:
    text: str

    def to_api(self) -> dict[str, Any]:
        return {"type": "text", "text": self.text}

@dataclass
class ToolInvocationBlock:
    id: str
    name: str
    raw_input: Any
    # "tool_use" for client tools, "server_tool_use" when the service runs it itself
    type: str = "tool_use"

    def to_api(self) -> dict[str, Any]:
        return {"type": self.type, "id": self.id, "name": self.name, "input": self.raw_input}

@dataclass
class ToolResultBlock:
    id: str
    content: str
    is_error: bool = False

    def to_api(self) -> dict[str, Any]:
        return {
            "type": "tool_result",
            "tool_use_id": self.id,
            "content": self.content,
            "is_error": self.is_error,
        }

@dataclass
class RawBlock:
    """Any other block the service returns (server tool results, thinking, ...).

    Kept verbatim so the transcript can be resent unchanged.
    """
    data: dict[str, Any]

    @property
    def type(self) -> str:
        return str(self.data.get("type") or "")

    def to_api(self) -> dict[str, Any]:
        return dict(self.data)

ContentBlock = Union[TextBlock, ToolInvocationBlock, ToolResultBlock, RawBlock]

@dataclass
class Turn:
    role: Role
    content: list[ContentBlock] = field(default_factory=list)

    @staticmethod
    def user_text(text: str) -> "Turn":
        return Turn(role="user", content=[TextBlock(text)])

    def to_api(self) -> dict[str, Any]:
        return {"role": self.role, "content": [b.to_api() for b in self.content]}

@dataclass
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0

@dataclass
class ServiceResponse:
    content: list[ContentBlock] = field(default_factory=list)
    stop_reason: str | None = None
    usage: Usage | None = None

def block_from_api(obj: dict[str, Any]) -> ContentBlock:
    t = obj.get("type")
    if t == "text":
        return TextBlock(text=str(obj.get("text") or ""))
    if t in ("tool_use", "server_tool_use"):
        return ToolInvocationBlock(
            id=str(obj.get("id") or ""),
            name=str(obj.get("name") or ""),
            raw_input=obj.get("input") or {},
            type=str(t),
        )
    if t == "tool_result":
        content = obj.get("content")
        return ToolResultBlock(
            id=str(obj.get("tool_use_id") or ""),
            content=content if isinstance(content, str) else str(content or ""),
            is_error=bool(obj.get("is_error")),
        )
    return RawBlock(data=dict(obj))
