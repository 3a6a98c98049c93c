"""Smoke tests against a real, unreachable endpoint.

A closed port on localhost refuses connections immediately, so these tests
exercise the real transports without any network access.
"""

from __future__ import annotations

import asyncio
import socket

import mcp_probe.tools as tools


def _closed_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def test_unreachable_endpoints_resolve_to_error_envelopes() -> None:
    base = f"http://127.0.0.1:{_closed_port()}"
    options = {"timeout": 2.0, "sse_read_timeout": 10.0}

    async def run_all() -> list[tools.envelope.ProbeResult]:
        return [
            await tools.call_tool_sse(endpoint=f"{base}/sse", tool_name="test_tool", **options),
            await tools.call_tool_http(
                endpoint=f"{base}/mcp", tool_name="test_tool", tool_args={"key": "value"}, **options
            ),
            await tools.read_resource_sse(endpoint=f"{base}/sse", resource_uri="resource://test", **options),
            await tools.get_prompt_sse(
                endpoint=f"{base}/sse", prompt_name="test_prompt", prompt_args={"arg1": "value1"}, **options
            ),
        ]

    for result in asyncio.run(run_all()):
        assert isinstance(result.success, bool)
        assert result.success is False
        assert isinstance(result.error, str) and result.error
