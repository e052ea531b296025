from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from ..session.models import ServiceResponse, Usage, block_from_api

class ProviderError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

class ModelService(Protocol):
    async def create(
        self,
        *,
        model: str,
        tools: list[dict[str, Any]],
        system: str,
        max_tokens: int,
        messages: list[dict[str, Any]],
    ) -> ServiceResponse: ...

@dataclass
class MessagesClient:
    """
    Minimal Messages API client (POST {base_url}/v1/messages).
    Only the request/response shape the runner needs is handled here.
    """
    api_key: str
    base_url: str = "https://api.anthropic.com"
    api_version: str = "2023-06-01"
    timeout: float = 120.0
    beta: list[str] = field(default_factory=list)
    transport: httpx.AsyncBaseTransport | None = None

    def _url(self) -> str:
        base = self.base_url.rstrip("/")
        if base.endswith("/v1"):
            return base + "/messages"
        return base + "/v1/messages"

    def _headers(self) -> dict[str, str]:
        headers = {
            "content-type": "application/json",
            "anthropic-version": self.api_version,
            "x-api-key": self.api_key,
        }
        if self.beta:
            headers["anthropic-beta"] = ",".join(self.beta)
        return headers

    async def create(
        self,
        *,
        model: str,
        tools: list[dict[str, Any]],
        system: str,
        max_tokens: int,
        messages: list[dict[str, Any]],
    ) -> ServiceResponse:
        if not self.api_key:
            raise ProviderError(
                "Missing API key. Set ANTHROPIC_API_KEY or configure api_key in pycomputeragent.yaml."
            )

        payload: dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "messages": messages,
        }
        if system:
            payload["system"] = system
        if tools:
            payload["tools"] = tools

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(self._url(), json=payload, headers=self._headers())
        except httpx.TimeoutException as e:
            raise ProviderError(f"Provider timeout: {e}") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Provider connection error: {e}") from e

        if resp.status_code >= 400:
            body = resp.text
            kind = ""
            try:
                kind = str((resp.json().get("error") or {}).get("type") or "")
            except ValueError:
                pass
            raise ProviderError(
                f"Provider HTTPError {resp.status_code} {kind}: {body[:2000]}".replace("  ", " "),
                status_code=resp.status_code,
                body=body,
            )

        data = resp.json()
        usage_data = data.get("usage") or {}
        return ServiceResponse(
            content=[block_from_api(b) for b in (data.get("content") or []) if isinstance(b, dict)],
            stop_reason=data.get("stop_reason"),
            usage=Usage(
                input_tokens=int(usage_data.get("input_tokens") or 0),
                output_tokens=int(usage_data.get("output_tokens") or 0),
            ),
        )
