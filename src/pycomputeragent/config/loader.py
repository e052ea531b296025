from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Mapping

from platformdirs import user_config_dir

from .models import BehaviorConfig, ShellConfig

APP_NAME = "pycomputeragent"


def _candidate_paths(cwd: Path) -> list[Path]:
    # project-level (higher priority)
    return [
        cwd / ".pycomputeragent.json",
        cwd / "pycomputeragent.json",
    ]


def _global_candidate_paths() -> list[Path]:
    cfg_dir = Path(user_config_dir(APP_NAME))
    return [cfg_dir / "pycomputeragent.json"]


def _load_json(p: Path) -> dict[str, Any] | None:
    try:
        obj = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    return obj if isinstance(obj, dict) else None


def _merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    out = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge_dicts(out[k], v)  # type: ignore
        else:
            out[k] = v
    return out


def _env_int(env: Mapping[str, str], key: str) -> int | None:
    raw = env.get(key)
    if not raw:
        return None
    try:
        n = int(raw, 10)
    except ValueError:
        return None
    return n if n > 0 else None


def web_tools_from_env(env: Mapping[str, str]) -> dict[str, Any]:
    """WEB_SEARCH_* / WEB_FETCH_* variables in the same shape as the JSON blocks."""
    search: dict[str, Any] = {}
    n = _env_int(env, "WEB_SEARCH_MAX_USES")
    if n is not None:
        search["max_uses"] = n
    if env.get("WEB_SEARCH_ALLOWED_DOMAINS"):
        search["allowed_domains"] = env["WEB_SEARCH_ALLOWED_DOMAINS"]
    if env.get("WEB_SEARCH_BLOCKED_DOMAINS"):
        search["blocked_domains"] = env["WEB_SEARCH_BLOCKED_DOMAINS"]
    loc = {
        k: env[f"WEB_SEARCH_USER_LOCATION_{k.upper()}"]
        for k in ("city", "region", "country", "timezone")
        if env.get(f"WEB_SEARCH_USER_LOCATION_{k.upper()}")
    }
    if loc:
        search["user_location"] = loc

    fetch: dict[str, Any] = {}
    if env.get("WEB_FETCH_ENABLED"):
        fetch["enabled"] = env["WEB_FETCH_ENABLED"].lower() == "true"
    n = _env_int(env, "WEB_FETCH_MAX_USES")
    if n is not None:
        fetch["max_uses"] = n
    if env.get("WEB_FETCH_ALLOWED_DOMAINS"):
        fetch["allowed_domains"] = env["WEB_FETCH_ALLOWED_DOMAINS"]
    if env.get("WEB_FETCH_BLOCKED_DOMAINS"):
        fetch["blocked_domains"] = env["WEB_FETCH_BLOCKED_DOMAINS"]
    if env.get("WEB_FETCH_ENABLE_CITATIONS"):
        fetch["citations"] = env["WEB_FETCH_ENABLE_CITATIONS"].lower() == "true"
    n = _env_int(env, "WEB_FETCH_MAX_CONTENT_TOKENS")
    if n is not None:
        fetch["max_content_tokens"] = n

    out: dict[str, Any] = {}
    if search:
        out["web_search"] = search
    if fetch:
        out["web_fetch"] = fetch
    return out


def load_behavior_config(
    *,
    cwd: Path,
    explicit_path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> BehaviorConfig:
    """Load behavior config.

    Merge order: global < project < explicit_path < environment.
    """
    merged: dict[str, Any] = {}
    loaded_from: Path | None = None

    for p in _global_candidate_paths():
        if p.exists() and p.is_file():
            obj = _load_json(p)
            if obj is not None:
                merged = _merge_dicts(merged, obj)
                loaded_from = p

    for p in _candidate_paths(cwd):
        if p.exists() and p.is_file():
            obj = _load_json(p)
            if obj is not None:
                merged = _merge_dicts(merged, obj)
                loaded_from = p
                break  # first match wins for project-level

    if explicit_path is not None:
        p = explicit_path.expanduser().resolve()
        if not p.is_file():
            raise FileNotFoundError(f"Behavior config not found: {p}")
        obj = _load_json(p)
        if obj is None:
            raise ValueError(f"Behavior config must be a JSON object: {p}")
        merged = _merge_dicts(merged, obj)
        loaded_from = p

    merged = _merge_dicts(merged, web_tools_from_env(os.environ if env is None else env))

    cfg = BehaviorConfig()
    cfg.loaded_from = loaded_from

    for key in ("max_depth", "max_retries", "max_tokens"):
        v = merged.get(key)
        if isinstance(v, int) and not isinstance(v, bool) and v > 0:
            setattr(cfg, key, v)

    cf = merged.get("context_file")
    if isinstance(cf, str) and cf.strip():
        cfg.context_file = cf.strip()

    cfg.shell = ShellConfig.from_obj(merged.get("shell"))
    cfg.web_search.apply(merged.get("web_search"))
    cfg.web_fetch.apply(merged.get("web_fetch"))

    return cfg
