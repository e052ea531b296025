from __future__ import annotations

import asyncio
import random
import re
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from .errors import MaxDepthExceededError, ServiceCallError
from .events.store import EventStore
from .llm.messages_api import ModelService
from .output.handlers import OutputHandler
from .session.models import (
    ServiceResponse,
    TextBlock,
    ToolInvocationBlock,
    ToolResultBlock,
    Turn,
)
from .tools.dispatcher import dispatch
from .tools.registry import ToolRegistry

STOP_REASONS = {
    "max_tokens": "Max tokens reached.",
    "stop_sequence": "Custom stop sequence encountered.",
    "tool_use": "Tool use initiated.",
    "end_turn": "Reached natural stopping point.",
    "model_context_window_exceeded": "Model context window exceeded.",
    "pause_turn": "Paused long-running turn.",
    "refusal": "Refusal to respond.",
}

TRANSIENT_MARKERS = ("rate_limit", "overloaded", "timeout")
TRANSIENT_STATUS_RE = re.compile(r"\b(?:429|50[023])\b")


def describe_stop_reason(reason: str | None) -> str:
    return STOP_REASONS.get(reason or "", "Unknown stop reason.")


def is_transient(err: BaseException) -> bool:
    """Rate limiting, overload, timeouts and 5xx are worth backing off for."""
    if isinstance(err, (httpx.TimeoutException, asyncio.TimeoutError)):
        return True
    status = getattr(err, "status_code", None)
    if isinstance(status, int) and (status == 429 or status >= 500):
        return True
    text = str(err).lower()
    return any(m in text for m in TRANSIENT_MARKERS) or bool(TRANSIENT_STATUS_RE.search(text))


def _prompt_char_count(messages: list[dict[str, Any]]) -> int:
    total = 0
    for m in messages:
        for b in m.get("content") or []:
            if isinstance(b, dict):
                for key in ("text", "content"):
                    v = b.get(key)
                    if isinstance(v, str):
                        total += len(v)
    return total


@dataclass
class Orchestrator:
    """Drives the model/tool exchange for one user request.

    Each iteration calls the service once, records the assistant turn, runs
    the requested tools in order and appends their results as one user turn.
    The loop continues while the service asks for tools, at most `max_depth`
    service calls per `run`.
    """

    service: ModelService
    tools: ToolRegistry
    model: str
    max_tokens: int = 1024
    max_depth: int = 10
    max_retries: int = 3
    base_delay: float = 1.0
    jitter: float = 1.0
    non_transient_delay: float = 0.5
    events: Optional[EventStore] = None

    async def run(
        self,
        system_prompt: str,
        transcript: list[Turn],
        output: OutputHandler,
        depth: int = 0,
    ) -> list[Turn]:
        appended: list[Turn] = []

        while True:
            if depth >= self.max_depth:
                err = MaxDepthExceededError(self.max_depth)
                output.show_error(str(err))
                self._event("run.max_depth", {"depth": depth, "max_depth": self.max_depth})
                raise err

            if depth > 0:
                output.show_debug(f"Recursion depth: {depth}/{self.max_depth}")

            output.start_thinking()
            response = await self._call_service(system_prompt, [*transcript, *appended], output, depth)

            appended.append(Turn(role="assistant", content=list(response.content)))
            output.stop_thinking(describe_stop_reason(response.stop_reason))

            results: list[ToolResultBlock] = []
            for block in response.content:
                if isinstance(block, TextBlock):
                    output.show_message(block.text)
                elif isinstance(block, ToolInvocationBlock):
                    t0 = time.perf_counter()
                    result = await dispatch(block, self.tools, output)
                    self._event("tool.result", {
                        "depth": depth,
                        "tool": block.name,
                        "tool_use_id": block.id,
                        "local": result is not None,
                        "is_error": bool(result and result.is_error),
                        "elapsed_ms": int((time.perf_counter() - t0) * 1000),
                        "content_preview": (result.content[:2000] if result else None),
                    })
                    if result is not None:
                        results.append(result)

            if results:
                appended.append(Turn(role="user", content=list(results)))

            if response.stop_reason != "tool_use":
                return appended

            depth += 1

    async def _call_service(
        self,
        system_prompt: str,
        transcript: list[Turn],
        output: OutputHandler,
        depth: int,
    ) -> ServiceResponse:
        messages = [t.to_api() for t in transcript]
        tool_defs = self.tools.to_api()
        tool_names = self.tools.names()

        self._event("llm.request", {
            "depth": depth,
            "model": self.model,
            "messages_count": len(messages),
            "tools_count": len(tool_defs),
            "prompt_chars": _prompt_char_count(messages) + len(system_prompt),
        })

        for attempt in range(1, self.max_retries + 1):
            t0 = time.perf_counter()
            try:
                response = await self.service.create(
                    model=self.model,
                    tools=tool_defs,
                    system=system_prompt,
                    max_tokens=self.max_tokens,
                    messages=messages,
                )
            except Exception as e:
                output.show_error(
                    f"Model service call failed (attempt {attempt}/{self.max_retries}): {e} "
                    f"[Model: {self.model}, Tools: {', '.join(tool_names) or 'none'}, "
                    f"System length: {len(system_prompt)}]"
                )
                self._event("llm.error", {"depth": depth, "attempt": attempt, "error": str(e)[:2000]})

                if attempt == self.max_retries:
                    output.stop_thinking("Request failed.")
                    raise ServiceCallError(
                        attempts=self.max_retries,
                        model=self.model,
                        tool_names=tool_names,
                        system_length=len(system_prompt),
                        context_messages=len(messages),
                        cause=e,
                    ) from e

                if is_transient(e):
                    delay = self.base_delay * (2 ** (attempt - 1)) + random.random() * self.jitter
                    output.show_message(f"Retrying in {round(delay * 1000)}ms due to transient error...")
                else:
                    delay = self.non_transient_delay
                await asyncio.sleep(delay)
                continue

            usage = response.usage
            self._event("llm.response", {
                "depth": depth,
                "attempt": attempt,
                "elapsed_ms": int((time.perf_counter() - t0) * 1000),
                "stop_reason": response.stop_reason,
                "input_tokens": usage.input_tokens if usage else None,
                "output_tokens": usage.output_tokens if usage else None,
                "tool_calls": [
                    {"id": b.id, "name": b.name}
                    for b in response.content
                    if isinstance(b, ToolInvocationBlock)
                ],
            })
            return response

        # max_retries < 1
        raise ServiceCallError(
            attempts=0,
            model=self.model,
            tool_names=tool_names,
            system_length=len(system_prompt),
            context_messages=len(messages),
            cause=RuntimeError("no attempts were made"),
        )

    def _event(self, event_type: str, data: dict[str, Any]) -> None:
        if self.events:
            self.events.append(event_type, data)
