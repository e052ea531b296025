from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config.loader import load_behavior_config
from .config.models import BehaviorConfig
from .events.store import EventStore
from .llm.factory import ProviderConfig, build_client, resolve_provider_config
from .llm.messages_api import ModelService
from .runner import Orchestrator
from .sandbox.session import CommandSession
from .tools.builtin import register_builtin_tools
from .tools.builtin_tools.text_editor import handle_view
from .tools.builtin_tools.web_tools import WEB_FETCH_BETA
from .tools.registry import ToolRegistry

SYSTEM_PROMPT = """You are a helpful assistant that can use tools to work with local text files, search file contents, run bash commands, and search or fetch pages on the web. Use the provided tools to fulfill user requests as needed.

Available context:
{context}

When using tools, ensure the input is correctly formatted as JSON. If a tool returns an error or no result, inform the user appropriately.
"""


def load_system_prompt(cwd: Path, context_file: str) -> tuple[str, int]:
    """Build the system prompt around the context file; returns (prompt, context length)."""
    res = handle_view(cwd, context_file)
    context = res.content if res.success and res.content else "No context available"
    return SYSTEM_PROMPT.format(context=context), len(context)


@dataclass
class AppContext:
    cwd: Path
    provider: ProviderConfig
    service: ModelService
    tools: ToolRegistry
    session: CommandSession
    behavior: BehaviorConfig
    events: EventStore | None = None
    max_depth: Optional[int] = None

    def orchestrator(self) -> Orchestrator:
        return Orchestrator(
            service=self.service,
            tools=self.tools,
            model=self.provider.model,
            max_tokens=self.behavior.max_tokens or self.provider.max_tokens,
            max_depth=self.max_depth or self.behavior.max_depth,
            max_retries=self.behavior.max_retries,
            events=self.events,
        )

    @staticmethod
    def from_env(
        cwd: Path,
        provider: str | None,
        model: str | None,
        config_path: Optional[Path] = None,
        behavior_config: Path | None = None,
        max_depth: Optional[int] = None,
        debug: bool = False,
        record_events: bool = True,
    ) -> "AppContext":
        provider_cfg = resolve_provider_config(provider=provider, model=model, yaml_path=config_path)
        behavior = load_behavior_config(cwd=cwd, explicit_path=behavior_config)

        service = build_client(
            provider_cfg,
            beta=[WEB_FETCH_BETA] if behavior.web_fetch.enabled else None,
        )

        # One shell session per process/conversation.
        session = CommandSession(
            cwd=str(cwd),
            timeout=behavior.shell.timeout,
            max_output_bytes=behavior.shell.max_output_bytes,
            debug=debug,
        )

        tools = ToolRegistry()
        register_builtin_tools(tools, cwd=cwd, session=session, behavior=behavior)

        return AppContext(
            cwd=cwd,
            provider=provider_cfg,
            service=service,
            tools=tools,
            session=session,
            behavior=behavior,
            events=EventStore.open() if record_events else None,
            max_depth=max_depth,
        )
