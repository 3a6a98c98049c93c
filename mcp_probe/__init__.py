"""Top-level package for the mcp-probe CLI.

This package probes remote MCP servers over SSE and StreamableHTTP. The
probe functions live in :mod:`mcp_probe.tools`.
"""

from typing import List

from .result import ProbeResult
from .tools import call_tool_http, call_tool_sse, get_prompt_sse, read_resource_sse

__all__: List[str] = [
    "ProbeResult",
    "call_tool_sse",
    "call_tool_http",
    "read_resource_sse",
    "get_prompt_sse",
]
