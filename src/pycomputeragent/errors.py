from __future__ import annotations


class AgentError(RuntimeError):
    """Fatal condition that aborts the whole request."""


class MaxDepthExceededError(AgentError):
    def __init__(self, max_depth: int):
        super().__init__(
            f"Maximum recursion depth ({max_depth}) reached. "
            "This may indicate an infinite loop in tool calls."
        )
        self.max_depth = max_depth


class ServiceCallError(AgentError):
    """The model service failed on every attempt."""

    def __init__(
        self,
        *,
        attempts: int,
        model: str,
        tool_names: list[str],
        system_length: int,
        context_messages: int,
        cause: BaseException,
    ):
        tools = f"{len(tool_names)} tools ({', '.join(tool_names)})" if tool_names else "none"
        super().__init__(
            f"Model service call failed after {attempts} attempts. "
            f"Model: {model}, Tools: {tools}, "
            f"System length: {system_length}, Context messages: {context_messages}. "
            f"Original error: {cause}"
        )
        self.attempts = attempts
        self.model = model
        self.tool_names = tool_names
        self.system_length = system_length
        self.context_messages = context_messages
