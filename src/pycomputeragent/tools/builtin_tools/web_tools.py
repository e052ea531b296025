"""Tools that the model service runs itself.

Only the descriptors live here: the service performs the search or fetch and
returns its results inside the next response.
"""
from __future__ import annotations

from ..base import ApiTool, ToolSpec
from ...config.models import WebFetchConfig, WebSearchConfig

WEB_FETCH_BETA = "web-fetch-2025-09-10"


def web_search_tool(cfg: WebSearchConfig) -> ApiTool:
    return ApiTool(spec=ToolSpec(name="web_search", type="web_search_20250305", options=cfg.options()))


def web_fetch_tool(cfg: WebFetchConfig) -> ApiTool:
    return ApiTool(spec=ToolSpec(name="web_fetch", type="web_fetch_20250910", options=cfg.options()))
