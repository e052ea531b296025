from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


def _positive_int(v: Any) -> int | None:
    if isinstance(v, bool) or not isinstance(v, int) or v <= 0:
        return None
    return v


def _domain_list(v: Any) -> list[str] | None:
    if isinstance(v, str):
        v = v.split(",")
    if not isinstance(v, list):
        return None
    out = [str(d).strip() for d in v if str(d).strip()]
    return out or None


@dataclass
class ShellConfig:
    timeout: float = 30
    max_output_bytes: int = 10 * 1024 * 1024

    @staticmethod
    def from_obj(obj: Any) -> "ShellConfig":
        cfg = ShellConfig()
        if not isinstance(obj, dict):
            return cfg
        t = obj.get("timeout")
        if isinstance(t, (int, float)) and not isinstance(t, bool) and t > 0:
            cfg.timeout = float(t)
        mo = _positive_int(obj.get("max_output_bytes"))
        if mo is not None:
            cfg.max_output_bytes = mo
        return cfg


@dataclass
class WebSearchConfig:
    enabled: bool = True
    max_uses: int | None = None
    allowed_domains: list[str] | None = None
    blocked_domains: list[str] | None = None
    user_location: dict[str, str] | None = None

    def apply(self, obj: Any) -> None:
        if not isinstance(obj, dict):
            return
        if isinstance(obj.get("enabled"), bool):
            self.enabled = obj["enabled"]
        if "max_uses" in obj:
            self.max_uses = _positive_int(obj.get("max_uses"))
        if "allowed_domains" in obj:
            self.allowed_domains = _domain_list(obj.get("allowed_domains"))
        if "blocked_domains" in obj:
            self.blocked_domains = _domain_list(obj.get("blocked_domains"))
        loc = obj.get("user_location")
        if isinstance(loc, dict):
            fields = {k: str(loc[k]) for k in ("city", "region", "country", "timezone") if loc.get(k)}
            self.user_location = fields or None

    def options(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.max_uses:
            d["max_uses"] = self.max_uses
        if self.allowed_domains:
            d["allowed_domains"] = self.allowed_domains
        if self.blocked_domains:
            d["blocked_domains"] = self.blocked_domains
        if self.user_location:
            d["user_location"] = {"type": "approximate", **self.user_location}
        return d


@dataclass
class WebFetchConfig:
    enabled: bool = False
    max_uses: int | None = None
    allowed_domains: list[str] | None = None
    blocked_domains: list[str] | None = None
    citations: bool = False
    max_content_tokens: int | None = None

    def apply(self, obj: Any) -> None:
        if not isinstance(obj, dict):
            return
        if isinstance(obj.get("enabled"), bool):
            self.enabled = obj["enabled"]
        if "max_uses" in obj:
            self.max_uses = _positive_int(obj.get("max_uses"))
        if "allowed_domains" in obj:
            self.allowed_domains = _domain_list(obj.get("allowed_domains"))
        if "blocked_domains" in obj:
            self.blocked_domains = _domain_list(obj.get("blocked_domains"))
        if isinstance(obj.get("citations"), bool):
            self.citations = obj["citations"]
        if "max_content_tokens" in obj:
            self.max_content_tokens = _positive_int(obj.get("max_content_tokens"))

    def options(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.max_uses:
            d["max_uses"] = self.max_uses
        if self.allowed_domains:
            d["allowed_domains"] = self.allowed_domains
        if self.blocked_domains:
            d["blocked_domains"] = self.blocked_domains
        if self.citations:
            d["citations"] = {"enabled": True}
        if self.max_content_tokens:
            d["max_content_tokens"] = self.max_content_tokens
        return d


@dataclass
class BehaviorConfig:
    """Behavior config loaded from JSON (plus WEB_SEARCH_* / WEB_FETCH_* env)."""

    max_depth: int = 10
    max_retries: int = 3
    max_tokens: int | None = None
    context_file: str = "./tmp/ASSISTANT.md"
    shell: ShellConfig = field(default_factory=ShellConfig)
    web_search: WebSearchConfig = field(default_factory=WebSearchConfig)
    web_fetch: WebFetchConfig = field(default_factory=WebFetchConfig)

    loaded_from: Path | None = None
