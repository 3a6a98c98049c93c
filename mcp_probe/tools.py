"""Probe functions for remote MCP endpoints.

The module exports exactly four async functions. Each one connects to an
endpoint, performs a single MCP request and resolves to a
:class:`~mcp_probe.result.ProbeResult`. None of them raises for network,
protocol, timeout or validation failures; the failure is reported in the
envelope instead.

    result = await call_tool_sse(
        endpoint="https://mcp.deepwiki.com/sse",
        tool_name="read_wiki_structure",
        tool_args={"repoName": "modelcontextprotocol/python-sdk"},
    )
    if not result.success:
        print(result.error)
"""

from __future__ import annotations

from typing import Any, Mapping

from . import render
from . import result as envelope
from .client import McpEndpointClient
from .config import TRANSPORT_HTTP, TRANSPORT_SSE

__all__ = ["call_tool_sse", "call_tool_http", "read_resource_sse", "get_prompt_sse"]


async def _call_tool(
    transport: str,
    endpoint: str,
    tool_name: str,
    tool_args: Mapping[str, Any] | None,
    headers: Mapping[str, str] | None,
    timeout: float | None,
    sse_read_timeout: float | None,
    output: str,
) -> envelope.ProbeResult:
    if not tool_name:
        return envelope.ProbeResult.failed("tool_name is required")
    arguments = dict(tool_args or {})

    async def action(client: McpEndpointClient) -> str:
        tool_result = await client.call_tool(tool_name, arguments)
        if tool_result.isError:
            message = render.render_tool_result(tool_result) or f"Tool '{tool_name}' failed"
            raise envelope.ToolCallError(message)
        return render.render_tool_result(tool_result, output)

    return await envelope.probe_url(
        endpoint,
        transport,
        action,
        headers=dict(headers or {}),
        timeout=timeout,
        sse_read_timeout=sse_read_timeout,
    )


async def call_tool_sse(
    endpoint: str,
    tool_name: str,
    tool_args: Mapping[str, Any] | None = None,
    *,
    headers: Mapping[str, str] | None = None,
    timeout: float | None = None,
    sse_read_timeout: float | None = None,
    output: str = render.OUTPUT_TEXT,
) -> envelope.ProbeResult:
    """Call a tool on an MCP endpoint over SSE.

    Args:
        endpoint: The SSE endpoint URL (e.g. "https://mcp.deepwiki.com/sse").
        tool_name: Name of the tool to call.
        tool_args: Arguments passed to the tool. Defaults to ``{}``.
        headers: Extra HTTP headers, such as an ``Authorization`` header.
        timeout: HTTP timeout in seconds.
        sse_read_timeout: Upper bound in seconds for the whole call.
        output: ``"text"`` or ``"json"``.
    """

    return await _call_tool(
        TRANSPORT_SSE, endpoint, tool_name, tool_args, headers, timeout, sse_read_timeout, output
    )


async def call_tool_http(
    endpoint: str,
    tool_name: str,
    tool_args: Mapping[str, Any] | None = None,
    *,
    headers: Mapping[str, str] | None = None,
    timeout: float | None = None,
    sse_read_timeout: float | None = None,
    output: str = render.OUTPUT_TEXT,
) -> envelope.ProbeResult:
    """Call a tool on an MCP endpoint over StreamableHTTP.

    Takes the same arguments as :func:`call_tool_sse`; ``endpoint`` is the
    HTTP endpoint URL (e.g. "https://mcp.example.com/mcp").
    """

    return await _call_tool(
        TRANSPORT_HTTP, endpoint, tool_name, tool_args, headers, timeout, sse_read_timeout, output
    )


async def _read_resource(
    transport: str,
    endpoint: str,
    resource_uri: str,
    headers: Mapping[str, str] | None,
    timeout: float | None,
    sse_read_timeout: float | None,
    output: str,
) -> envelope.ProbeResult:
    if not resource_uri:
        return envelope.ProbeResult.failed("resource_uri is required")

    async def action(client: McpEndpointClient) -> str:
        resource = await client.read_resource(resource_uri)
        return render.render_resource_result(resource, output)

    return await envelope.probe_url(
        endpoint,
        transport,
        action,
        headers=dict(headers or {}),
        timeout=timeout,
        sse_read_timeout=sse_read_timeout,
    )


async def _get_prompt(
    transport: str,
    endpoint: str,
    prompt_name: str,
    prompt_args: Mapping[str, Any] | None,
    headers: Mapping[str, str] | None,
    timeout: float | None,
    sse_read_timeout: float | None,
    output: str,
) -> envelope.ProbeResult:
    if not prompt_name:
        return envelope.ProbeResult.failed("prompt_name is required")
    arguments = dict(prompt_args or {})

    async def action(client: McpEndpointClient) -> str:
        prompt = await client.get_prompt(prompt_name, arguments)
        return render.render_prompt_result(prompt, output)

    return await envelope.probe_url(
        endpoint,
        transport,
        action,
        headers=dict(headers or {}),
        timeout=timeout,
        sse_read_timeout=sse_read_timeout,
    )


async def read_resource_sse(
    endpoint: str,
    resource_uri: str,
    *,
    headers: Mapping[str, str] | None = None,
    timeout: float | None = None,
    sse_read_timeout: float | None = None,
    output: str = render.OUTPUT_TEXT,
) -> envelope.ProbeResult:
    """Read a resource from an MCP endpoint over SSE."""

    return await _read_resource(
        TRANSPORT_SSE, endpoint, resource_uri, headers, timeout, sse_read_timeout, output
    )


async def get_prompt_sse(
    endpoint: str,
    prompt_name: str,
    prompt_args: Mapping[str, Any] | None = None,
    *,
    headers: Mapping[str, str] | None = None,
    timeout: float | None = None,
    sse_read_timeout: float | None = None,
    output: str = render.OUTPUT_TEXT,
) -> envelope.ProbeResult:
    """Get a prompt from an MCP endpoint over SSE."""

    return await _get_prompt(
        TRANSPORT_SSE, endpoint, prompt_name, prompt_args, headers, timeout, sse_read_timeout, output
    )
